"""Image analysis proxy relaying a base64 image and a fixed prompt to OpenAI chat completions."""

__all__ = []
