"""
Memorial services.

Access control and plan lifecycle rules, the memorial repository, view
counting, and the clients for the payment gateway, the generative-AI drafting
service and QR code rendering.

Modules are imported directly (``from app.services.plan_service import ...``);
``access_control`` has no Flask or database dependency.
"""
