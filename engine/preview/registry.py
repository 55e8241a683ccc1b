"""
Preview pipeline — static component registry.

Names map to Python components that need no compilation. The process-wide
STATIC_REGISTRY is filled when engine.preview.blocks is imported and frozen
right after.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

Component = Callable[..., Any]


class ComponentRegistry:
    def __init__(self) -> None:
        self._components: dict[str, Component] = {}
        self._frozen = False

    def register(self, name: str, component: Component | None = None) -> Any:
        """
        Add a component under `name`. Without `component`, returns a decorator:

            @registry.register("Button")
            def Button(props=None, *_): ...
        """
        if component is None:

            def decorator(fn: Component) -> Component:
                self.register(name, fn)
                return fn

            return decorator

        if self._frozen:
            raise RuntimeError(f"Component registry is frozen; cannot register '{name}'")
        if name in self._components:
            raise ValueError(f"Component '{name}' is already registered")
        self._components[name] = component
        return component

    def lookup(self, name: str) -> Component | None:
        return self._components.get(name)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return sorted(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._components)


STATIC_REGISTRY = ComponentRegistry()
