"""Prompt templates for LLM interactions."""


def build_analysis_prompt(text: str) -> str:
    """Explain-and-translate prompt for a saved word or phrase."""
    return f"""You are a language learning assistant. Analyze the following English text for a Chinese speaker.
The text is: "{text}"

Provide your analysis in a valid JSON format, with these keys:
1. "explanation": A concise explanation of the word or phrase in English, including its part of speech and a simple example sentence.
2. "translation": The most common and accurate Chinese translation.
3. "suggestedTags": Up to three short tags; use "category#subcategory" for hierarchy (e.g. "topic#travel", "grammar#tenses").

Do not include any text outside of the JSON object."""
