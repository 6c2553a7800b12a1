"""Structured editing of Homebrew-style formulas.

A formula is parsed into a tree of ``do ... end`` (and ``class``/``def``/...)
sections. Only the quoted values of individual ``version``, ``url`` and
``sha256`` lines are ever replaced; every other byte of the document is kept,
so ``FormulaDocument.parse(text).render() == text``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from formula_updater.common.errors import BlockNotFoundError, FormulaParseError
from formula_updater.common.types import (
    Artifact,
    PatchOutcome,
    PatchReport,
    PlatformSpec,
    ReleaseDescriptor,
)


log = logging.getLogger(__name__)

VERSION_LABEL = "version"

_KEYWORD_OPENERS = {"class", "module", "def", "if", "unless", "case", "begin", "while", "until"}
_DO_BLOCK = re.compile(r"\bdo\s*(\|[^|]*\|)?$")
_ASSIGNED_OPENER = re.compile(r"=\s*(if|unless|case|begin)\b")
_END = re.compile(r"^end\b")
_TRAILING_END = re.compile(r"[;\s]end$")
_FIRST_WORD = re.compile(r"[A-Za-z_][\w:]*[?!]?")
_HEREDOC = re.compile(r"<<[~-]?(['\"]?)([A-Za-z_]\w*)\1")
_STRING_LITERAL = re.compile(r"(?<!<<)(?<!<<~)(?<!<<-)\"(?:\\.|[^\"\\])*\"|(?<!<<)(?<!<<~)(?<!<<-)'(?:\\.|[^'\\])*'")
_VALUE_LINE = re.compile(r'^(?P<indent>\s*)(?P<key>[a-z0-9_]+)(?P<sep>\s+)"(?P<value>[^"]*)"(?P<rest>.*?)(?P<eol>\r?\n)?$')


def _strip_comment(line: str) -> str:
    quote: str | None = None
    escaped = False
    for idx, ch in enumerate(line):
        if escaped:
            escaped = False
            continue
        if ch == "\\" and quote is not None:
            escaped = True
            continue
        if quote is not None:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "#":
            return line[:idx]
    return line


def _value_line(line: str, key: str) -> re.Match[str] | None:
    m = _VALUE_LINE.match(line)
    if m is None or m.group("key") != key:
        return None
    return m


@dataclass
class Section:
    name: str
    start: int
    children: list["Section"] = field(default_factory=list)
    # Indices of the lines that belong directly to this section.
    lines: list[int] = field(default_factory=list)

    def iter_sections(self, name: str) -> Iterator["Section"]:
        for child in self.children:
            if child.name == name:
                yield child
            yield from child.iter_sections(name)

    def walk_breadth_first(self) -> Iterator["Section"]:
        queue = [self]
        while queue:
            section = queue.pop(0)
            yield section
            queue.extend(section.children)


class FormulaDocument:
    def __init__(self, lines: list[str], root: Section):
        self.lines = lines
        self.root = root

    @classmethod
    def parse(cls, text: str) -> "FormulaDocument":
        lines = text.splitlines(keepends=True)
        root = Section(name="<root>", start=-1)
        stack = [root]
        heredoc_tags: list[str] = []

        for idx, raw in enumerate(lines):
            if heredoc_tags:
                # Heredoc bodies are opaque content.
                if raw.strip() == heredoc_tags[0]:
                    heredoc_tags.pop(0)
                stack[-1].lines.append(idx)
                continue

            code = _strip_comment(raw).strip()
            if not code:
                continue
            # String contents never open sections or heredocs; quoted heredoc tags are kept.
            bare = _STRING_LITERAL.sub('""', code)
            heredoc_tags.extend(m.group(2) for m in _HEREDOC.finditer(bare))

            if _END.match(bare):
                if len(stack) == 1:
                    raise FormulaParseError("unexpected 'end' with no open section", idx + 1)
                stack.pop()
                continue

            first = _FIRST_WORD.match(bare)
            name = first.group(0) if first else ""
            opens = bool(_DO_BLOCK.search(bare) or _ASSIGNED_OPENER.search(bare)) or name in _KEYWORD_OPENERS
            if opens and not _TRAILING_END.search(bare):
                section = Section(name=name, start=idx)
                stack[-1].children.append(section)
                stack.append(section)
            else:
                stack[-1].lines.append(idx)

        if heredoc_tags:
            raise FormulaParseError(f"unterminated heredoc {heredoc_tags[0]!r}")
        if len(stack) > 1:
            open_section = stack[-1]
            raise FormulaParseError(f"section {open_section.name!r} is never closed", open_section.start + 1)
        return cls(lines, root)

    def render(self) -> str:
        return "".join(self.lines)

    def _replace_value(self, idx: int, key: str, value: str) -> str:
        m = _value_line(self.lines[idx], key)
        if m is None:
            raise FormulaParseError(f"expected a {key} line", idx + 1)
        self.lines[idx] = f'{m.group("indent")}{key}{m.group("sep")}"{value}"{m.group("rest")}{m.group("eol") or ""}'
        return m.group("value")

    def find_version_line(self) -> int:
        for section in self.root.walk_breadth_first():
            for idx in section.lines:
                if _value_line(self.lines[idx], "version") is not None:
                    return idx
        raise BlockNotFoundError([VERSION_LABEL])

    def set_version(self, version: str) -> str:
        """Replace the version value and return the previous one."""
        return self._replace_value(self.find_version_line(), "version", version)

    def find_platform_block(self, spec: PlatformSpec) -> tuple[int, int]:
        for os_section in self.root.iter_sections(spec.os_section):
            for arch_section in os_section.iter_sections(spec.arch_section):
                urls = [i for i in arch_section.lines if _value_line(self.lines[i], "url")]
                digests = [i for i in arch_section.lines if _value_line(self.lines[i], "sha256")]
                if len(urls) == 1 and len(digests) == 1:
                    return urls[0], digests[0]
        raise BlockNotFoundError([spec.label])

    def set_platform_block(self, spec: PlatformSpec, url: str, sha256: str) -> None:
        url_idx, sha_idx = self.find_platform_block(spec)
        self._replace_value(url_idx, "url", url)
        self._replace_value(sha_idx, "sha256", sha256)


def patch_formula(text: str, release: ReleaseDescriptor, artifacts: Sequence[Artifact]) -> PatchReport:
    """Rewrite the version and every platform block, collecting one outcome per step.

    Unmatched blocks are recorded and the remaining ones are still attempted.
    Raises FormulaParseError when the text cannot be parsed at all.
    """
    doc = FormulaDocument.parse(text)
    outcomes: list[PatchOutcome] = []

    try:
        old_version = doc.set_version(release.version)
    except BlockNotFoundError as exc:
        log.error("Could not find version field")
        outcomes.append(PatchOutcome(platform=None, label=VERSION_LABEL, success=False, message=str(exc)))
    else:
        if old_version == release.version:
            message = f"Version remains unchanged at {release.version}"
        else:
            message = f"Updating version: {old_version} -> {release.version}"
        log.info(message)
        outcomes.append(PatchOutcome(platform=None, label=VERSION_LABEL, success=True, message=message))

    for artifact in artifacts:
        spec = artifact.platform
        try:
            doc.set_platform_block(spec, artifact.url, artifact.sha256)
        except BlockNotFoundError as exc:
            log.error("Could not find or replace block for %s", spec.label)
            outcomes.append(PatchOutcome(platform=spec.key, label=spec.label, success=False, message=str(exc)))
            continue
        log.info("Updated %s block", spec.label)
        outcomes.append(PatchOutcome(platform=spec.key, label=spec.label, success=True))

    return PatchReport(text=doc.render(), outcomes=tuple(outcomes))
