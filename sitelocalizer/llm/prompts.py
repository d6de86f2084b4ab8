"""
Prompt builders for the translation backend.
"""
from typing import Optional

from sitelocalizer.config import TRANSLATE_TAG_IN, TRANSLATE_TAG_OUT


def build_system_prompt() -> str:
    return "\n".join([
        "You are a professional website translator. Follow these rules strictly:",
        f"1) Output ONLY the translated text, wrapped in {TRANSLATE_TAG_IN} and {TRANSLATE_TAG_OUT}, no commentary",
        "2) Preserve formatting, line breaks, and spacing",
        "3) Maintain the same tone and style as the original",
        "4) Keep proper nouns, brand names and technical terms when appropriate",
        "5) Preserve placeholder variables exactly (e.g., {{name}})",
        "6) If the target language is right-to-left (e.g., Arabic), translate appropriately",
    ])


def build_translation_prompt(
    text: str,
    source_language: str,
    target_language: str,
    context: Optional[str] = None
) -> str:
    prompt = f"Translate the following {source_language} text to {target_language}."
    if context:
        prompt += f"\nContext: {context}"
    prompt += f"\n\nText to translate:\n{text}\n\nTranslation:"
    return prompt
