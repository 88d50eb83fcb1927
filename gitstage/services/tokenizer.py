"""Model tokenizers used to measure AI context size."""

from dataclasses import dataclass
from collections.abc import Callable

import tiktoken

DEFAULT_ENCODING = "o200k_base"
HARMONY_ENCODING = "o200k_harmony"


@dataclass(frozen=True)
class TextTokenizer:
    """Encode/decode pair; anything with these two callables will do."""

    encode: Callable[[str], list[int]]
    decode: Callable[[list[int]], str]

    def count(self, text: str) -> int:
        return len(self.encode(text))


def encoding_name_for_model(model: str) -> str:
    normalized = model.strip().lower()
    if normalized.startswith("gpt-oss") or "harmony" in normalized:
        return HARMONY_ENCODING
    return DEFAULT_ENCODING


def resolve_tokenizer(model: str) -> TextTokenizer:
    """Pick the tokenizer matching ``model``."""
    encoding = tiktoken.get_encoding(encoding_name_for_model(model))
    return TextTokenizer(
        encode=lambda text: encoding.encode(text, disallowed_special=()),
        decode=encoding.decode,
    )
