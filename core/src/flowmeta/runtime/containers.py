from __future__ import annotations

from flowmeta.contracts import RunConfig

# First enabled engine wins.
ENGINE_PRECEDENCE: tuple[str, ...] = ("docker", "singularity", "podman", "shifter", "charliecloud")


class ConfigContainerResolver:
    """ContainerResolver reading `process.container` from the run config."""

    def resolve(self, config: RunConfig) -> str | None:
        image = config.process.container
        if image is None or not image.strip():
            return None
        return image.strip()


def select_container_engine(config: RunConfig) -> str | None:
    for engine in ENGINE_PRECEDENCE:
        if config.engine_enabled(engine):
            return engine
    return None
