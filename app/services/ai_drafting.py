"""
AI-assisted memorial drafting.

Two prompts against the Google Gemini ``generateContent`` REST endpoint:
drafting a biography from a short life summary, and tidying the biography,
tributes, stories and photo list an owner has entered.
Documentation: https://ai.google.dev/api/generate-content
"""

import json
import logging
from typing import List, Optional

import requests
from flask import current_app
from pydantic import BaseModel, ValidationError

from app.services.errors import AIDraftingError

logger = logging.getLogger(__name__)

BIOGRAPHY_ERROR = "Failed to generate biography. Please try again."
ORGANIZE_ERROR = "Failed to organize content. Please try again."

BIOGRAPHY_PROMPT = """You are a professional biographer who specializes in writing respectful and heartfelt biographies for memorial pages.

Based on the information provided, write an initial draft of a biography for the deceased person.

Name: {name}
Birth Date: {birth_date}
Death Date: {death_date}
Life Summary: {life_summary}

Biography Draft:"""

ORGANIZE_PROMPT = """You are an AI assistant that helps organize user-generated content for a memorial page.

You will receive the biography, tributes, stories, and photos of the deceased. Organize the content into a well-structured and easy-to-navigate format: fix spelling, merge duplicates, order tributes and stories sensibly. Do not invent facts.

Biography: {biography}
Tributes:
{tributes}
Stories:
{stories}
Photos:
{photos}

Return only JSON of the form:
{{"biography": "...", "tributes": ["..."], "stories": ["..."], "photoGallery": ["<photo url>"]}}"""


class OrganizedContent(BaseModel):
    biography: str
    tributes: List[str] = []
    stories: List[str] = []
    photo_gallery: List[str] = []


class GeminiClient:
    """Minimal text-generation client for the Gemini REST API."""

    def __init__(self, api_key: Optional[str], model: str, base_url: str, timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'GeminiClient':
        return cls(
            api_key=config.get('GEMINI_API_KEY'),
            model=config.get('GEMINI_MODEL', 'gemini-1.5-flash-latest'),
            base_url=config.get('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta'),
            timeout=config.get('AI_TIMEOUT', 30.0),
        )

    def generate(self, prompt: str, json_output: bool = False) -> str:
        """Return the text of the first candidate. Raises RuntimeError on any failure."""
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not configured")

        body = {'contents': [{'role': 'user', 'parts': [{'text': prompt}]}]}
        if json_output:
            body['generationConfig'] = {'responseMimeType': 'application/json'}

        response = requests.post(
            f"{self.base_url}/models/{self.model}:generateContent",
            params={'key': self.api_key},
            json=body,
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()

        try:
            parts = data['candidates'][0]['content']['parts']
        except (KeyError, IndexError, TypeError):
            raise RuntimeError(f"Unexpected Gemini response: {str(data)[:200]}")
        text = ''.join(p.get('text', '') for p in parts if isinstance(p, dict)).strip()
        if not text:
            raise RuntimeError("Gemini returned an empty response")
        return text


def _client(client=None):
    return client or GeminiClient.from_config(current_app.config)


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith('```'):
        text = text.split('\n', 1)[1] if '\n' in text else ''
        if text.rstrip().endswith('```'):
            text = text.rstrip()[:-3]
    return text.strip()


def generate_biography_draft(name, birth_date, death_date, life_summary, client=None) -> str:
    prompt = BIOGRAPHY_PROMPT.format(
        name=name or '', birth_date=birth_date or '', death_date=death_date or '',
        life_summary=life_summary or '')
    try:
        return _client(client).generate(prompt)
    except (requests.exceptions.RequestException, RuntimeError, ValueError) as e:
        logger.error(f"Error generating biography draft: {e}")
        raise AIDraftingError(BIOGRAPHY_ERROR) from e


def organize_content(biography, tributes, stories, photo_urls, client=None) -> OrganizedContent:
    prompt = ORGANIZE_PROMPT.format(
        biography=biography or '',
        tributes='\n'.join(f'- {t}' for t in tributes or []) or '(none)',
        stories='\n'.join(f'- {s}' for s in stories or []) or '(none)',
        photos='\n'.join(f'- {p}' for p in photo_urls or []) or '(none)',
    )
    try:
        raw = _client(client).generate(prompt, json_output=True)
        data = json.loads(_strip_code_fence(raw))
        if isinstance(data, dict) and 'organizedContent' in data:
            data = data['organizedContent']
        if isinstance(data, dict) and 'photoGallery' in data:
            data['photo_gallery'] = data.pop('photoGallery')
        content = OrganizedContent.model_validate(data)
    except (requests.exceptions.RequestException, RuntimeError, ValueError, ValidationError) as e:
        logger.error(f"Error organizing content: {e}")
        raise AIDraftingError(ORGANIZE_ERROR) from e

    # The gallery may only reorder photos the owner actually uploaded.
    allowed = set(photo_urls or [])
    content.photo_gallery = [url for url in content.photo_gallery if url in allowed]
    return content
