"""Agent registry: the set of descriptors the router may choose from."""

from collections.abc import Iterable

from jinja2 import Environment, TemplateSyntaxError

from parley.agents.models import AgentCategory, AgentDescriptor
from parley.config.models.routing import AgentDescriptorConfig
from parley.errors import RegistryError
from parley.observability.logging import get_logger

logger = get_logger(__name__)


class AgentRegistry:
    """Immutable collection of agent descriptors.

    Built once at process start and injected into the router. The
    constructor enforces the invariants routing relies on:
    - names are unique
    - at most one active descriptor per category
    - an active fallback descriptor exists
    - every prompt template parses
    """

    def __init__(self, descriptors: Iterable[AgentDescriptor]) -> None:
        self._by_name: dict[str, AgentDescriptor] = {}
        self._by_category: dict[AgentCategory, AgentDescriptor] = {}

        env = Environment()
        for descriptor in descriptors:
            if descriptor.name in self._by_name:
                raise RegistryError(f"Duplicate agent name: {descriptor.name}")
            try:
                env.parse(descriptor.prompt_template)
            except TemplateSyntaxError as e:
                raise RegistryError(
                    f"Invalid prompt template for agent '{descriptor.name}': {e.message}"
                ) from e
            self._by_name[descriptor.name] = descriptor

            if not descriptor.active:
                continue
            existing = self._by_category.get(descriptor.category)
            if existing is not None:
                raise RegistryError(
                    f"Agents '{existing.name}' and '{descriptor.name}' are both "
                    f"active for category {descriptor.category.value}"
                )
            self._by_category[descriptor.category] = descriptor

        if AgentCategory.FALLBACK not in self._by_category:
            raise RegistryError("An active fallback agent is required")

        logger.info(
            "agent_registry_loaded",
            agents=sorted(self._by_name),
            active=sorted(d.name for d in self._by_category.values()),
        )

    @classmethod
    def from_config(cls, configs: Iterable[AgentDescriptorConfig]) -> "AgentRegistry":
        return cls(
            AgentDescriptor(
                name=c.name,
                category=AgentCategory(c.category),
                model=c.model,
                temperature=c.temperature,
                max_tokens=c.max_tokens,
                prompt_template=c.prompt_template,
                active=c.active,
            )
            for c in configs
        )

    def get(self, name: str) -> AgentDescriptor | None:
        return self._by_name.get(name)

    def is_known(self, name: str) -> bool:
        return name in self._by_name

    def is_active(self, name: str) -> bool:
        descriptor = self._by_name.get(name)
        return descriptor is not None and descriptor.active

    def active(self) -> tuple[AgentDescriptor, ...]:
        """Snapshot of active descriptors in category priority order."""
        return tuple(
            sorted(self._by_category.values(), key=lambda d: d.category.priority)
        )

    def resolve(self, category: AgentCategory) -> AgentDescriptor | None:
        return self._by_category.get(category)

    def fallback(self) -> AgentDescriptor:
        return self._by_category[AgentCategory.FALLBACK]

    def __len__(self) -> int:
        return len(self._by_name)
