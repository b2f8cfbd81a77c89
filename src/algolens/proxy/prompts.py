"""Fixed upstream contract: endpoint, model, token ceiling and the interpreter prompt.

The prompt is a constant. It is sent unchanged with every request so the upstream model
is always instructed to reply with the same four-key JSON object:

* ``raw_scene``: 3–5 objective sentences.
* ``tags``: 10 short poetic phrases.
* ``inner_voice``: an 80–150 word first-person monologue.
* ``receipt``: 3–5 ``{item, price}`` entries followed by a ``TOTAL`` entry.

The proxy does not validate the reply against this shape.
"""

from __future__ import annotations

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 1000
IMAGE_DATA_URI_PREFIX = "data:image/jpeg;base64,"
JSON_OBJECT_RESPONSE_FORMAT = {"type": "json_object"}

RESPONSE_KEYS = ("raw_scene", "tags", "inner_voice", "receipt")

INTERPRETER_PROMPT = """
You are a “visual-algorithm interpreter.” Your task is to analyze the image I provide and generate an explanation suitable for the public, helping viewers understand how an algorithm “sees” a person.
Please output valid JSON ONLY with the following keys:
1. "raw_scene": Provide 3–5 simple, objective, non-judgmental sentences describing the person and environment. If uncertain, say “uncertain.”
2. "tags": An array of 10 abstract, atmospheric, algorithmic poetic phrases (3–8 words each), centered on fashion, lifestyle, mood, and visual signals, while avoiding literal descriptors or identity assumptions.
3. "inner_voice": Write an 80–150-word “algorithm monologue” in a light, non-sarcastic tone (First-Person). Describe what visual features you notice and how you might use them for recommendation/classification. Emphasize statistical guesses.
4. "receipt": An array of objects representing items detected in the image and their estimated futuristic/market value. Keys: 'item' (string), 'price' (string like '$150'). Include 3-5 items and a 'TOTAL' entry at the end.
"""


def build_image_data_uri(image_b64: str) -> str:
    return f"{IMAGE_DATA_URI_PREFIX}{image_b64}"
