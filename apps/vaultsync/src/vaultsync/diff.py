"""Unified diff previews for dry-run pushes."""

import difflib
import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Literal

import click

from .codec import encode
from .models import DiffResult

logger = logging.getLogger(__name__)

CONTEXT_LINES = 3
EMPTY_HASH = "0000000"
FILE_MODE = "100644"
RENDER_TIMEOUT = 30  # seconds

DiffAlgorithm = Literal["positional", "lcs"]
DIFF_ALGORITHMS: tuple[str, ...] = ("positional", "lcs")

# (tag, i1, i2, j1, j2) as produced by difflib.SequenceMatcher.get_opcodes()
Opcode = tuple[str, int, int, int, int]


def short_hash(text: str) -> str:
    """
    Seven hex digit fingerprint of a text, for ``index`` lines.

    Polynomial rolling hash (base 31) over code points, wrapped to a
    signed 64-bit integer. Not an integrity check.
    """
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFFFFFFFFFF
    if value >= 1 << 63:
        value -= 1 << 64
    return f"{abs(value) % 0xFFFFFFF:07x}"


def positional_opcodes(old: list[str], new: list[str]) -> list[Opcode]:
    """Pair line i of ``old`` with line i of ``new``; runs of mismatches become changes."""

    def same(i: int) -> bool:
        return i < len(old) and i < len(new) and old[i] == new[i]

    opcodes: list[Opcode] = []
    total = max(len(old), len(new))
    i = 0
    while i < total:
        start, matching = i, same(i)
        while i < total and same(i) == matching:
            i += 1

        if matching:
            opcodes.append(("equal", start, i, start, i))
            continue

        i1, i2 = min(start, len(old)), min(i, len(old))
        j1, j2 = min(start, len(new)), min(i, len(new))
        if i1 < i2 and j1 < j2:
            tag = "replace"
        elif i1 < i2:
            tag = "delete"
        else:
            tag = "insert"
        opcodes.append((tag, i1, i2, j1, j2))
    return opcodes


def lcs_opcodes(old: list[str], new: list[str]) -> list[Opcode]:
    """Longest-common-subsequence pairing via difflib."""
    return difflib.SequenceMatcher(None, old, new, autojunk=False).get_opcodes()


def group_opcodes(opcodes: list[Opcode], context: int = CONTEXT_LINES) -> Iterator[list[Opcode]]:
    """
    Split opcodes into hunks with up to ``context`` equal lines on each side.

    Yields nothing when every opcode is ``equal``.
    """
    codes = list(opcodes)
    if not codes:
        return

    # Trim leading and trailing context
    tag, i1, i2, j1, j2 = codes[0]
    if tag == "equal":
        codes[0] = tag, max(i1, i2 - context), i2, max(j1, j2 - context), j2
    tag, i1, i2, j1, j2 = codes[-1]
    if tag == "equal":
        codes[-1] = tag, i1, min(i2, i1 + context), j1, min(j2, j1 + context)

    group: list[Opcode] = []
    for tag, i1, i2, j1, j2 in codes:
        # An equal run longer than two contexts closes the current hunk
        if tag == "equal" and i2 - i1 > 2 * context:
            group.append((tag, i1, min(i2, i1 + context), j1, min(j2, j1 + context)))
            if any(code[0] != "equal" for code in group):
                yield group
            group = []
            i1, j1 = max(i1, i2 - context), max(j1, j2 - context)
        group.append((tag, i1, i2, j1, j2))

    if any(code[0] != "equal" for code in group):
        yield group


def _range(start: int, count: int) -> str:
    # Unified diff ranges are 1-based; an empty range points at the line before
    return f"{start + 1 if count else start},{count}"


def format_hunk(group: list[Opcode], old: list[str], new: list[str]) -> list[str]:
    """Render one hunk with its ``@@`` header."""
    first, last = group[0], group[-1]
    old_count = last[2] - first[1]
    new_count = last[4] - first[3]
    lines = [f"@@ -{_range(first[1], old_count)} +{_range(first[3], new_count)} @@"]

    for tag, i1, i2, j1, j2 in group:
        if tag == "equal":
            lines.extend(" " + line for line in old[i1:i2])
            continue
        if tag in ("replace", "delete"):
            lines.extend("-" + line for line in old[i1:i2])
        if tag in ("replace", "insert"):
            lines.extend("+" + line for line in new[j1:j2])
    return lines


class DiffEngine:
    """Compare secret payloads through their encoded YAML text."""

    def __init__(self, algorithm: DiffAlgorithm = "positional", context: int = CONTEXT_LINES):
        if algorithm not in DIFF_ALGORITHMS:
            raise ValueError(f"unknown diff algorithm: {algorithm}")
        self.algorithm = algorithm
        self.context = context

    def diff(self, existing: dict[str, Any] | None, new: dict[str, Any], label: str) -> DiffResult:
        """
        Diff an existing payload against a proposed one.

        Args:
            existing: Current remote payload, or None if the secret does not exist
            new: Payload about to be pushed
            label: Path shown in the diff headers

        Returns:
            DiffResult; ``text`` is empty when nothing changed
        """
        new_text = encode(new)
        if existing is None:
            return self.new_file(new_text, label)
        return self.diff_text(encode(existing), new_text, label)

    def new_file(self, new_text: str, label: str) -> DiffResult:
        """Render a diff creating ``label`` with ``new_text``."""
        new_hash = short_hash(new_text)
        new_lines = new_text.splitlines()
        lines = [
            f"diff --git a/{label} b/{label}",
            f"new file mode {FILE_MODE}",
            f"index {EMPTY_HASH}..{new_hash}",
            "--- /dev/null",
            f"+++ b/{label}",
            f"@@ -0,0 +{_range(0, len(new_lines))} @@",
        ]
        lines.extend("+" + line for line in new_lines)
        return DiffResult(
            changed=True,
            text="\n".join(lines) + "\n",
            index=f"{EMPTY_HASH}..{new_hash}",
        )

    def diff_text(self, old_text: str, new_text: str, label: str) -> DiffResult:
        """Render a unified diff between two texts."""
        if old_text == new_text:
            return DiffResult(changed=False)

        old_lines = old_text.splitlines()
        new_lines = new_text.splitlines()
        pair: Callable[[list[str], list[str]], list[Opcode]] = (
            lcs_opcodes if self.algorithm == "lcs" else positional_opcodes
        )

        index = f"{short_hash(old_text)}..{short_hash(new_text)}"
        lines = [
            f"diff --git a/{label} b/{label}",
            f"index {index} {FILE_MODE}",
            f"--- a/{label}",
            f"+++ b/{label}",
        ]
        for group in group_opcodes(pair(old_lines, new_lines), self.context):
            lines.extend(format_hunk(group, old_lines, new_lines))

        return DiffResult(changed=True, text="\n".join(lines) + "\n", index=index)


@dataclass(frozen=True)
class DiffTool:
    """External diff pretty-printer reading a unified diff on stdin."""

    name: str
    args: tuple[str, ...]


PREFERRED_DIFF_TOOLS: tuple[DiffTool, ...] = (
    DiffTool("delta", ("delta", "--no-gitconfig", "--side-by-side")),
    DiffTool("difftastic", ("difftastic", "--display=side-by-side")),
    DiffTool("diff-so-fancy", ("diff-so-fancy",)),
)


def resolve_diff_tool(
    candidates: tuple[DiffTool, ...] = PREFERRED_DIFF_TOOLS,
    which: Callable[[str], str | None] = shutil.which,
) -> DiffTool | None:
    """Return the first available tool in preference order, or None."""
    for tool in candidates:
        if which(tool.args[0]):
            logger.debug("Using diff tool: %s", tool.name)
            return tool
    logger.debug("No diff tool found, printing raw diffs")
    return None


class DiffRenderer:
    """Print diffs, through an external tool when one was resolved."""

    def __init__(self, tool: DiffTool | None = None, timeout: float = RENDER_TIMEOUT):
        self.tool = tool
        self.timeout = timeout

    def render(self, text: str) -> None:
        """Print a diff; raw text is printed whenever the tool cannot be used."""
        if not text:
            return
        if self.tool is None:
            click.echo(text, nl=False)
            return

        try:
            result = subprocess.run(
                list(self.tool.args),
                input=text,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("Diff tool %s failed: %s", self.tool.name, e)
            click.echo(text, nl=False)
            return

        if result.returncode != 0:
            logger.debug("Diff tool %s exited with %d", self.tool.name, result.returncode)
            click.echo(text, nl=False)
            return
        click.echo(result.stdout, nl=False)
