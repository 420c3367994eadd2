from app import create_app, db
from app.models import User, Memorial, Photo, PaymentTransaction, Feedback

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Memorial": Memorial,
        "Photo": Photo,
        "PaymentTransaction": PaymentTransaction,
        "Feedback": Feedback,
    }


if __name__ == '__main__':
    app.run(debug=True)
