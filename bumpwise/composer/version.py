"""
Composer version and constraint model.

Composer versions and constraints are normalized to PEP 440 and evaluated
with :mod:`packaging`. Normalization rules:

* a leading ``v`` is dropped and ``@stability`` flags are stripped;
* ``-alpha``/``-beta``/``-RC`` map to ``a``/``b``/``rc`` pre-releases,
  ``-dev`` maps to ``.dev0`` and ``-patch``/``-pl``/``-p`` map to ``.post``,
  which keeps Composer's ordering ``dev < alpha < beta < RC < stable < patch``;
* ``dev-<branch>`` constraints match no numeric version.

Example:
    >>> ComposerRequirement("^1.2 || 2.0.*").satisfied_by("2.0.5")
    True
    >>> str(ComposerVersion("v1.2"))
    '1.2.0'
"""

from __future__ import annotations

import re
import functools
from typing import Any, List, Optional, Tuple, Union

from packaging.version import InvalidVersion, Version
from packaging.specifiers import InvalidSpecifier, SpecifierSet

from bumpwise.exceptions import ParseError

_VERSION = re.compile(
    r"""
    ^v?
    (?P<release>\d+(?:\.\d+){0,3})
    (?:
        [-_.]?
        (?P<stability>stable|alpha|beta|rc|patch|pl|dev|a|b|p)
        (?:[.-]?(?P<number>\d+))?
    )?
    (?:[-.](?P<dev>dev))?
    $
    """,
    re.VERBOSE | re.IGNORECASE,
)

_STABILITY_FLAG = re.compile(r"@[a-zA-Z]+")
_OPERATOR_SPACE = re.compile(r"(>=|<=|!=|<>|==|~>|>|<|=|\^|~)\s+")
_OR_SPLIT = re.compile(r"\s*\|\|?\s*")
_AND_SPLIT = re.compile(r"\s*,\s*|\s+")
_HYPHEN_RANGE = re.compile(r"^(?P<lower>\S+)\s+-\s+(?P<upper>\S+)$")
_ATOM = re.compile(r"^(?P<op>>=|<=|!=|<>|==|~>|>|<|=|\^|~)?(?P<version>.+)$")
_WILDCARD = re.compile(r"^v?(?P<prefix>(?:\d+\.)*)[*xX]$")

_PRE_LABELS = {"a": "alpha", "b": "beta", "rc": "RC"}


def _parse_release(raw: str) -> Tuple[Tuple[int, ...], str]:
    """Split a Composer version into release segments and a PEP 440 string."""
    text = _STABILITY_FLAG.sub("", raw.strip())
    match = _VERSION.match(text)
    if not match:
        raise ParseError(f"Invalid Composer version: {raw!r}", value=raw)

    release = tuple(int(part) for part in match.group("release").split("."))
    stability = (match.group("stability") or "").lower()
    number = match.group("number") or "0"

    suffix = ""
    if stability in ("alpha", "a"):
        suffix = f"a{number}"
    elif stability in ("beta", "b"):
        suffix = f"b{number}"
    elif stability == "rc":
        suffix = f"rc{number}"
    elif stability in ("patch", "pl", "p"):
        suffix = f".post{number}"
    elif stability == "dev":
        suffix = f".dev{number}"

    if match.group("dev") and ".dev" not in suffix:
        suffix += ".dev0"

    return release, ".".join(str(part) for part in release) + suffix


@functools.total_ordering
class ComposerVersion:
    """A version as published on a Composer registry.

    Args:
        raw: Version string such as ``1.22.1``, ``v2.0.0-RC1`` or ``1.0``.

    Raises:
        ParseError: If *raw* is not a numeric Composer version.
    """

    __slots__ = ("raw", "release", "_version")

    def __init__(self, raw: str) -> None:
        if not isinstance(raw, str):
            raise ParseError(f"Invalid Composer version: {raw!r}", value=repr(raw))

        release, normalized = _parse_release(raw)
        try:
            self._version = Version(normalized)
        except InvalidVersion as exc:
            raise ParseError(f"Invalid Composer version: {raw!r}", value=raw) from exc

        self.raw = raw
        self.release = release

    @classmethod
    def parse(cls, raw: str) -> "ComposerVersion":
        return cls(raw)

    @classmethod
    def is_correct(cls, raw: Any) -> bool:
        """Return True if *raw* parses as a numeric version."""
        if not isinstance(raw, str):
            return False
        try:
            cls(raw)
        except ParseError:
            return False
        return True

    @property
    def pep440(self) -> Version:
        return self._version

    @property
    def is_prerelease(self) -> bool:
        return self._version.is_prerelease

    @property
    def major(self) -> int:
        return self._version.major

    @property
    def minor(self) -> int:
        return self._version.minor

    @property
    def micro(self) -> int:
        return self._version.micro

    def _coerce(self, other: Any) -> Optional["ComposerVersion"]:
        if isinstance(other, ComposerVersion):
            return other
        if isinstance(other, str) and self.is_correct(other):
            return ComposerVersion(other)
        return None

    def __eq__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self._version == coerced._version

    def __lt__(self, other: Any) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self._version < coerced._version

    def __hash__(self) -> int:
        return hash(self._version)

    def __str__(self) -> str:
        release = list(self._version.release)
        while len(release) < 3:
            release.append(0)
        while len(release) > 3 and release[-1] == 0:
            release.pop()

        text = ".".join(str(part) for part in release)

        pre = self._version.pre
        if pre is not None:
            label, number = pre
            text += f"-{_PRE_LABELS[label]}{number or ''}"
        if self._version.post is not None:
            text += f"-patch{self._version.post or ''}"
        if self._version.dev is not None:
            text += "-dev"
        return text

    def __repr__(self) -> str:
        return f"ComposerVersion({self.raw!r})"


def _pep(version: str) -> str:
    """Return the PEP 440 form of a Composer version used inside a constraint."""
    return _parse_release(version)[1]


def _increment(release: Tuple[int, ...], index: int) -> str:
    upper = list(release[:index]) + [release[index] + 1]
    return ".".join(str(part) for part in upper)


class ComposerRequirement:
    """A Composer version constraint such as ``^1.2``, ``1.0.*`` or ``>=1 <2``.

    Args:
        raw: Constraint string as written in ``composer.json``.

    Raises:
        ParseError: If any part of the constraint cannot be understood.
    """

    def __init__(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw.strip():
            raise ParseError(f"Invalid Composer requirement: {raw!r}", value=str(raw))

        self.raw = raw
        # None stands for a branch constraint that matches no numeric version
        self._alternatives: List[Optional[SpecifierSet]] = []
        self._lower_bounds: List[ComposerVersion] = []

        for branch in _OR_SPLIT.split(raw.strip()):
            self._alternatives.append(self._parse_branch(branch))

    @classmethod
    def parse(cls, raw: str) -> "ComposerRequirement":
        return cls(raw)

    def _parse_branch(self, branch: str) -> Optional[SpecifierSet]:
        text = branch.split(" as ", 1)[0]
        text = _STABILITY_FLAG.sub("", text).strip()

        if text.startswith("dev-") or text.lower().endswith("x-dev"):
            return None
        if not text:
            return SpecifierSet("")

        hyphen = _HYPHEN_RANGE.match(text)
        if hyphen:
            specifiers = self._hyphen(hyphen.group("lower"), hyphen.group("upper"))
        else:
            specifiers = []
            text = _OPERATOR_SPACE.sub(r"\1", text)
            for atom in _AND_SPLIT.split(text):
                if atom:
                    specifiers.extend(self._atom(atom))

        try:
            return SpecifierSet(",".join(specifiers))
        except InvalidSpecifier as exc:
            raise ParseError(
                f"Invalid Composer requirement: {self.raw!r}", value=self.raw
            ) from exc

    def _hyphen(self, lower: str, upper: str) -> List[str]:
        self._lower_bounds.append(ComposerVersion(lower))
        release, _ = _parse_release(upper)
        if len(release) >= 3:
            return [f">={_pep(lower)}", f"<={_pep(upper)}"]
        return [f">={_pep(lower)}", f"<{_increment(release, len(release) - 1)}"]

    def _atom(self, atom: str) -> List[str]:
        match = _ATOM.match(atom)
        if not match:
            raise ParseError(f"Invalid Composer requirement: {self.raw!r}", value=self.raw)

        op = match.group("op") or "=="
        version = match.group("version")

        wildcard = _WILDCARD.match(version)
        if wildcard:
            prefix = wildcard.group("prefix").rstrip(".")
            if not prefix:
                return []
            if op in ("==", "="):
                self._lower_bounds.append(ComposerVersion(prefix))
                return [f"=={prefix}.*"]
            if op in ("!=", "<>"):
                return [f"!={prefix}.*"]
            version = prefix

        release, normalized = _parse_release(version)

        if op == "^":
            self._lower_bounds.append(ComposerVersion(version))
            index = next(
                (i for i, part in enumerate(release) if part != 0),
                len(release) - 1,
            )
            return [f">={normalized}", f"<{_increment(release, index)}"]

        if op in ("~", "~>"):
            self._lower_bounds.append(ComposerVersion(version))
            index = 0 if len(release) == 1 else len(release) - 2
            return [f">={normalized}", f"<{_increment(release, index)}"]

        if op in ("==", "=", ">=", ">"):
            self._lower_bounds.append(ComposerVersion(version))

        if op == "=":
            op = "=="
        elif op == "<>":
            op = "!="
        return [f"{op}{normalized}"]

    def satisfied_by(self, version: Union[str, ComposerVersion]) -> bool:
        """Return True if *version* satisfies any alternative of the constraint."""
        if isinstance(version, str):
            if not ComposerVersion.is_correct(version):
                return False
            version = ComposerVersion(version)

        candidate = str(version.pep440)
        return any(
            alternative is not None
            and alternative.contains(candidate, prereleases=True)
            for alternative in self._alternatives
        )

    def lower_bounds(self) -> List[ComposerVersion]:
        """Lower bounds named by the constraint, in written order."""
        return list(self._lower_bounds)

    def is_unbounded(self) -> bool:
        """Return True if some alternative admits every version (``*``, ``>=0``)."""
        for alternative in self._alternatives:
            if alternative is None:
                continue
            specs = list(alternative)
            if not specs:
                return True
            if all(
                spec.operator == ">=" and Version(spec.version) == Version("0")
                for spec in specs
            ):
                return True
        return False

    @property
    def is_branch(self) -> bool:
        """True if every alternative names a development branch."""
        return all(alternative is None for alternative in self._alternatives)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComposerRequirement):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"ComposerRequirement({self.raw!r})"
