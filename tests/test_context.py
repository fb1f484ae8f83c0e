from __future__ import annotations

from pathlib import Path

import click
import pytest

from bumpwise.config import BumpwiseConfig
from bumpwise.models.strategy import UpdateStrategy
from bumpwise.context import BumpwiseContext, pass_context


@pytest.mark.unit
class TestBumpwiseContext:
    """Tests for BumpwiseContext class."""

    def test_default_initialization(self) -> None:
        ctx = BumpwiseContext()

        assert ctx.config_path is None
        assert ctx.config == BumpwiseConfig()
        assert ctx.verbose == 0
        assert ctx.color is True

    def test_instances_are_independent(self) -> None:
        ctx1 = BumpwiseContext()
        ctx2 = BumpwiseContext()

        ctx1.verbose = 2
        ctx1.config.ignored_versions["monolog/monolog"] = ["2.0.0"]

        assert ctx2.verbose == 0
        assert ctx2.config.ignored_versions == {}

    def test_attributes_can_be_set(self) -> None:
        ctx = BumpwiseContext()
        config = BumpwiseConfig(update_strategy=UpdateStrategy.BUMP_VERSIONS)

        ctx.config_path = Path("/srv/app/bumpwise.toml")
        ctx.config = config
        ctx.color = False

        assert ctx.config_path == Path("/srv/app/bumpwise.toml")
        assert ctx.config is config
        assert ctx.color is False

    def test_slots_prevents_arbitrary_attributes(self) -> None:
        ctx = BumpwiseContext()

        with pytest.raises(AttributeError):
            ctx.unlock = "all"  # type: ignore


@pytest.mark.unit
class TestPassContextDecorator:
    """Tests for pass_context decorator."""

    def test_injects_existing_context(self) -> None:
        @click.command()
        @pass_context
        def command(ctx: BumpwiseContext) -> BumpwiseContext:
            return ctx

        click_ctx = click.Context(click.Command("test"))
        bumpwise_ctx = BumpwiseContext()
        click_ctx.obj = bumpwise_ctx

        assert click_ctx.invoke(command) is bumpwise_ctx

    def test_creates_context_when_missing(self) -> None:
        @click.command()
        @pass_context
        def command(ctx: BumpwiseContext) -> BumpwiseContext:
            return ctx

        click_ctx = click.Context(click.Command("test"))

        result = click_ctx.invoke(command)

        assert isinstance(result, BumpwiseContext)
        assert result.config.update_strategy is None
