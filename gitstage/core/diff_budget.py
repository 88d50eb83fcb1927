"""Fitting diff excerpts into a token budget."""

from dataclasses import dataclass

from ..services.tokenizer import TextTokenizer

MAX_CHANGED_LINES = 120
MAX_HUNKS = 12
MIN_BODY_TOKENS = 24

DIFF_SECTION_HEADING = "Diff highlights:"
SNIPPET_SEPARATOR = "\n\n"
NO_SNIPPETS_FALLBACK = "- no diff snippets were captured"
TRUNCATED_SUFFIX = "\n...[truncated]"
CONTEXT_TRUNCATED_SUFFIX = "\n...[context truncated]"


@dataclass(frozen=True)
class DiffSnippet:
    path: str
    body: str


@dataclass(frozen=True)
class PreparedSnippet:
    header: str
    body: str
    header_tokens: int
    body_tokens: int

    @property
    def min_body_tokens(self) -> int:
        return min(MIN_BODY_TOKENS, self.body_tokens)


def condense_diff(diff: str) -> str:
    """Keep section markers, the first hunk headers and the first changed lines.

    File header lines (``+++``/``---``) are dropped. When nothing qualifies the
    raw diff is returned trimmed.
    """
    relevant = []
    changed_lines = 0
    hunks = 0

    for line in diff.split("\n"):
        if line.startswith("# "):
            relevant.append(line)
        elif line.startswith("@@"):
            hunks += 1
            if hunks <= MAX_HUNKS:
                relevant.append(line)
        elif line.startswith("+++") or line.startswith("---"):
            continue
        elif line.startswith("+") or line.startswith("-"):
            changed_lines += 1
            if changed_lines <= MAX_CHANGED_LINES:
                relevant.append(line)

    return ("\n".join(relevant) if relevant else diff).strip()


def truncate_to_token_budget(
    text: str,
    token_limit: int,
    tokenizer: TextTokenizer,
    suffix: str = TRUNCATED_SUFFIX,
) -> str:
    """Clip ``text`` to ``token_limit`` tokens.

    A truncation marker is appended when it fits; below that the raw partial
    decode is returned without one.
    """
    if token_limit <= 0:
        return ""

    encoded = tokenizer.encode(text)
    if len(encoded) <= token_limit:
        return text

    suffix_tokens = len(tokenizer.encode(suffix))
    if token_limit <= suffix_tokens:
        return tokenizer.decode(encoded[:token_limit]).rstrip()

    clipped = tokenizer.decode(encoded[: token_limit - suffix_tokens]).rstrip()
    if not clipped:
        return tokenizer.decode(encoded[:token_limit]).rstrip()
    return f"{clipped}{suffix}"


def _prepare(snippets: list[DiffSnippet], tokenizer: TextTokenizer) -> list[PreparedSnippet]:
    prepared = []
    for snippet in snippets:
        if not snippet.body:
            continue
        header = f"FILE: {snippet.path}\n"
        prepared.append(
            PreparedSnippet(
                header=header,
                body=snippet.body,
                header_tokens=len(tokenizer.encode(header)),
                body_tokens=len(tokenizer.encode(snippet.body)),
            )
        )
    return prepared


def count_included_snippets(
    prepared: list[PreparedSnippet], available_tokens: int, separator_tokens: int
) -> int:
    """First pass: how many snippets, in selection order, fit their minimum cost.

    Stops at the first snippet that does not fit; later, smaller snippets are
    never pulled forward.
    """
    included = 0
    cost = 0
    for snippet in prepared:
        join_cost = separator_tokens if included > 0 else 0
        next_cost = cost + join_cost + snippet.header_tokens + snippet.min_body_tokens
        if next_cost > available_tokens:
            break
        included += 1
        cost = next_cost
    return included


def allocate_body_tokens(included: list[PreparedSnippet], body_budget: int) -> list[int]:
    """Second pass: hand out the remaining budget one token at a time, round robin.

    Every snippet starts at its minimum; no snippet grows past its own length.
    """
    allocations = [snippet.min_body_tokens for snippet in included]
    remaining = max(body_budget - sum(allocations), 0)

    while remaining > 0:
        progressed = False
        for index, snippet in enumerate(included):
            if remaining <= 0:
                break
            if allocations[index] >= snippet.body_tokens:
                continue
            allocations[index] += 1
            remaining -= 1
            progressed = True
        if not progressed:
            break

    return allocations


def build_diff_section_with_budget(
    snippets: list[DiffSnippet],
    preamble_lines: list[str],
    max_input_tokens: int,
    tokenizer: TextTokenizer,
) -> str:
    """Render the diff highlights that fit beside the preamble."""
    preamble = "\n".join([*preamble_lines, "", DIFF_SECTION_HEADING])
    available = max(max_input_tokens - len(tokenizer.encode(preamble)), 0)
    if available <= 0:
        return truncate_to_token_budget(NO_SNIPPETS_FALLBACK, 1, tokenizer)

    prepared = _prepare(snippets, tokenizer)
    if not prepared:
        return truncate_to_token_budget(NO_SNIPPETS_FALLBACK, available, tokenizer)

    separator_tokens = len(tokenizer.encode(SNIPPET_SEPARATOR))
    include_count = count_included_snippets(prepared, available, separator_tokens)

    if include_count == 0:
        first = prepared[0]
        if first.header_tokens >= available:
            return truncate_to_token_budget(NO_SNIPPETS_FALLBACK, available, tokenizer)
        body = truncate_to_token_budget(first.body, available - first.header_tokens, tokenizer)
        single = f"{first.header}{body}".rstrip()
        return single or truncate_to_token_budget(NO_SNIPPETS_FALLBACK, available, tokenizer)

    included = prepared[:include_count]
    fixed_cost = sum(snippet.header_tokens for snippet in included) + separator_tokens * (
        include_count - 1
    )
    allocations = allocate_body_tokens(included, max(available - fixed_cost, 0))

    rendered = []
    for snippet, allocation in zip(included, allocations):
        body = truncate_to_token_budget(snippet.body, allocation, tokenizer)
        block = f"{snippet.header}{body}".rstrip()
        if block:
            rendered.append(block)

    section = SNIPPET_SEPARATOR.join(rendered)
    if not section:
        return truncate_to_token_budget(NO_SNIPPETS_FALLBACK, available, tokenizer)
    return truncate_to_token_budget(section, available, tokenizer)
