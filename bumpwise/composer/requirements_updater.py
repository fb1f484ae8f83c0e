"""
Rewrites Composer requirement strings for a target version.

Strategies:

* ``bump_versions``: always move the requirement to the target, keeping
  the original precision (``1.0.*`` becomes ``1.6.*``, ``^1.0.0`` becomes
  ``^1.6.0``). For ``||`` alternatives only the last one is kept, bumped.
* ``bump_versions_if_necessary``: like ``bump_versions``, but a
  requirement that already admits the target is left as written.
* ``widen_ranges``: keep satisfied requirements; otherwise raise upper
  bounds, or append ``|| ^X.Y`` to caret, tilde and ``||`` constraints.
* ``lockfile_only``: never touch requirements.

Every rewritten string is checked against the target; if one still does
not admit it, the result is :class:`~bumpwise.models.Unfixable`.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Sequence, Tuple, Union

from bumpwise.exceptions import BumpwiseError, ParseError
from bumpwise.utils.logger import get_logger
from bumpwise.models.strategy import UpdateStrategy
from bumpwise.models.dependency import Requirement
from bumpwise.models.update import RequirementsUpdate, Unfixable, Updated
from bumpwise.composer.source import SourceKind, classify
from bumpwise.utils.version_utils import is_commit_sha
from bumpwise.composer.version import ComposerRequirement, ComposerVersion

logger = get_logger("composer.requirements_updater")

_OR_SEPARATOR = re.compile(r"\s*\|\|?\s*")
_AND_SEPARATOR = re.compile(r"(\s*,\s*|\s+)")
_OPERATOR_SPACE = re.compile(r"(>=|<=|!=|<>|==|~>|>|<|=|\^|~)\s+")
_FLAGS = re.compile(r"@[a-zA-Z]+")
_HYPHEN = re.compile(r"^(?P<lower>\S+)(?P<sep>\s+-\s+)(?P<upper>\S+)$")
_ATOM = re.compile(r"^(?P<op>>=|<=|!=|<>|==|~>|>|<|=|\^|~)?(?P<version>.+)$")
_VERSION_TOKEN = re.compile(
    r"^(?P<v>v?)(?P<body>\d+(?:\.\d+)*)(?P<wild>\.[*xX])?(?P<rest>[-.@+\w]*)$"
)


class RequirementsUpdater:
    """Computes updated requirements for one dependency.

    Args:
        requirements: Declarations of the dependency.
        latest_resolvable_version: Version the requirements must admit;
            ``None`` or a commit SHA leaves them unchanged.
        update_strategy: How to rewrite requirement strings.
    """

    def __init__(
        self,
        requirements: Sequence[Requirement],
        latest_resolvable_version: Optional[Union[str, ComposerVersion]],
        update_strategy: UpdateStrategy,
    ) -> None:
        self.requirements = tuple(requirements)
        self.update_strategy = update_strategy
        self.target: Optional[ComposerVersion] = None

        raw = str(latest_resolvable_version) if latest_resolvable_version is not None else None
        if raw is not None and not is_commit_sha(raw) and ComposerVersion.is_correct(raw):
            self.target = ComposerVersion(raw)

    def updated_requirements(self) -> RequirementsUpdate:
        if self.update_strategy is UpdateStrategy.LOCKFILE_ONLY or self.target is None:
            return Updated(self.requirements)

        updated: List[Requirement] = []
        for requirement in self.requirements:
            try:
                new = self._update(requirement)
            except ParseError as exc:
                logger.debug("Cannot rewrite %r: %s", requirement.requirement, exc)
                return Unfixable(f"unparseable requirement {requirement.requirement!r}")
            if new is None:
                return Unfixable(
                    f"{requirement.requirement!r} cannot be rewritten to admit {self.target}"
                )
            updated.append(new)
        return Updated(updated)

    # ------------------------------------------------------------------
    # Per requirement
    # ------------------------------------------------------------------

    def _update(self, requirement: Requirement) -> Optional[Requirement]:
        raw = requirement.requirement
        if raw is None or classify(requirement) is not SourceKind.REGISTRY:
            return requirement
        if "dev-" in raw or not re.search(r"\d", raw):
            return requirement

        target = self._target
        satisfied = ComposerRequirement(raw).satisfied_by(target)

        if self.update_strategy is UpdateStrategy.BUMP_VERSIONS:
            new = self._bump(raw)
        elif satisfied:
            return requirement
        elif self.update_strategy is UpdateStrategy.WIDEN_RANGES:
            new = self._widen(raw)
        else:
            new = self._bump(raw)

        if not ComposerRequirement(new).satisfied_by(target):
            return None
        return requirement.with_requirement(new)

    @property
    def _target(self) -> ComposerVersion:
        if self.target is None:
            raise BumpwiseError("No target version to rewrite requirements for")
        return self.target

    # ------------------------------------------------------------------
    # Bumping
    # ------------------------------------------------------------------

    def _bump(self, raw: str) -> str:
        branches = _OR_SEPARATOR.split(raw.strip())
        return self._bump_branch(branches[-1])

    def _bump_branch(self, branch: str) -> str:
        flags = "".join(_FLAGS.findall(branch))
        body = _FLAGS.sub("", branch).strip()

        hyphen = _HYPHEN.match(body)
        if hyphen:
            upper = hyphen.group("upper")
            if not ComposerRequirement(body).satisfied_by(self._target):
                upper = self._render_like(upper)
            return (
                self._render_like(hyphen.group("lower"))
                + hyphen.group("sep")
                + upper
                + flags
            )

        return self._map_atoms(body, self._bump_atom) + flags

    def _bump_atom(self, op: str, version: str) -> str:
        if op in ("!=", "<>"):
            return op + version
        if op in ("<", "<="):
            return self._raise_upper(op, version)
        if op in (">=", ">"):
            return ">=" + self._render_like(version)
        return op + self._render_like(version)

    # ------------------------------------------------------------------
    # Widening
    # ------------------------------------------------------------------

    def _widen(self, raw: str) -> str:
        branches = _OR_SEPARATOR.split(raw.strip())
        if len(branches) > 1 or re.search(r"[\^~]", raw):
            return f"{raw.strip()} || {self._caret_for_target()}"

        branch = branches[0]
        flags = "".join(_FLAGS.findall(branch))
        body = _FLAGS.sub("", branch).strip()

        hyphen = _HYPHEN.match(body)
        if hyphen:
            return (
                hyphen.group("lower")
                + hyphen.group("sep")
                + self._render_like(hyphen.group("upper"))
                + flags
            )

        if re.search(r"<", body):
            return self._map_atoms(body, self._widen_atom) + flags

        return self._bump_branch(branch)

    def _widen_atom(self, op: str, version: str) -> str:
        if op in ("<", "<="):
            return self._raise_upper(op, version)
        return op + version

    def _caret_for_target(self) -> str:
        target = self._target
        if target.major == 0 and target.minor == 0:
            return f"^0.0.{target.micro}"
        return f"^{target.major}.{target.minor}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _map_atoms(self, body: str, rewrite: Callable[[str, str], str]) -> str:
        body = _OPERATOR_SPACE.sub(r"\1", body)
        parts = _AND_SEPARATOR.split(body)

        rewritten: List[str] = []
        for index, part in enumerate(parts):
            # Odd indexes are the captured separators
            if index % 2 == 1 or not part:
                rewritten.append(part)
                continue
            match = _ATOM.match(part)
            if not match:
                raise ParseError(f"Invalid Composer requirement: {body!r}", value=body)
            rewritten.append(rewrite(match.group("op") or "", match.group("version")))
        return "".join(rewritten)

    def _raise_upper(self, op: str, version: str) -> str:
        if ComposerRequirement(op + version).satisfied_by(self._target):
            return op + version
        if op == "<=":
            return "<=" + self._render_like(version, minimum_precision=3)

        prefix, precision, _ = self._shape(version)
        upper = [self._target.major + 1] + [0] * (max(precision, 1) - 1)
        return "<" + prefix + ".".join(str(part) for part in upper)

    @staticmethod
    def _shape(version: str) -> Tuple[str, int, str]:
        match = _VERSION_TOKEN.match(version)
        if not match:
            raise ParseError(f"Invalid version in requirement: {version!r}", value=version)
        return match.group("v"), len(match.group("body").split(".")), match.group("wild") or ""

    def _render_like(self, version: str, minimum_precision: int = 0) -> str:
        """Render the target with the precision and style of *version*."""
        if version in ("*", "x", "X"):
            return version

        prefix, precision, wildcard = self._shape(version)
        precision = max(precision, minimum_precision)

        release = list(self._target.pep440.release)
        release += [0] * (precision - len(release))
        text = ".".join(str(part) for part in release[:precision])

        if not wildcard and precision >= 3 and "-" in str(self._target):
            text += "-" + str(self._target).split("-", 1)[1]
        return prefix + text + wildcard
