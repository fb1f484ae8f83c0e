from __future__ import annotations

import json
import pytest
from typing import Any, Callable, Dict, List, Optional

from bumpwise.models.dependency import DependencyFile
from bumpwise.composer.resolver import (
    Resolution,
    ResolutionRequest,
    ResolutionResult,
)


def composer_files(
    manifest: Dict[str, Any],
    lockfile: Optional[Dict[str, Any]] = None,
) -> List[DependencyFile]:
    files = [DependencyFile(name="composer.json", content=json.dumps(manifest))]
    if lockfile is not None:
        files.append(DependencyFile(name="composer.lock", content=json.dumps(lockfile)))
    return files


class ScriptedResolver:
    """Resolver double answering from a callable and recording every request."""

    def __init__(self, answer: Callable[[ResolutionRequest], ResolutionResult]) -> None:
        self.answer = answer
        self.requests: List[ResolutionRequest] = []

    async def resolve(self, request: ResolutionRequest) -> ResolutionResult:
        self.requests.append(request)
        return self.answer(request)


@pytest.fixture
def make_files() -> Callable[..., List[DependencyFile]]:
    return composer_files


@pytest.fixture
def scripted_resolver() -> Callable[..., ScriptedResolver]:
    """Build a resolver double; ``answer`` defaults to a fixed version."""

    def factory(
        answer: Optional[Callable[[ResolutionRequest], ResolutionResult]] = None,
        version: Optional[str] = None,
    ) -> ScriptedResolver:
        if answer is None:
            return ScriptedResolver(lambda request: Resolution(version))
        return ScriptedResolver(answer)

    return factory


@pytest.fixture
def monolog_manifest() -> Dict[str, Any]:
    return {
        "name": "acme/app",
        "require": {"php": ">=7.1", "monolog/monolog": "1.0.*"},
    }


@pytest.fixture
def monolog_lockfile() -> Dict[str, Any]:
    return {
        "packages": [
            {
                "name": "monolog/monolog",
                "version": "1.0.1",
                "source": {
                    "type": "git",
                    "url": "https://github.com/Seldaek/monolog.git",
                    "reference": "b704c49a3051536f67f2d39f13568f74615b9922",
                },
                "require": {"php": ">=5.3.0", "ext-json": "*"},
            }
        ],
        "packages-dev": [],
    }


@pytest.fixture
def monolog_versions() -> List[str]:
    return ["1.0.0", "1.0.1", "1.0.2"] + [f"1.{minor}.0" for minor in range(1, 22)] + [
        "1.22.0",
        "1.22.1",
        "2.0.0-beta1",
        "dev-master",
    ]
