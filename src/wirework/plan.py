"""Composition plans describing how resolved components are wired together.

A plan is a small tree built from three node kinds:

    - :class:`Leaf` names a single component.
    - :class:`Merge` combines several nodes side by side.
    - :class:`Provide` feeds the component named ``provider`` into ``node``.

The root of every plan is a :class:`Merge`. For example a cache that needs a
config component, next to an unrelated logger, is planned as::

    Merge((Leaf("Logger"), Provide(Leaf("Cache"), "Config")))

and formatted as ``merge(Logger, Cache.provide(Config))``.

Plans are descriptions only. Turning one into source code is left to the
code-editing collaborator, which receives the plan through :func:`plan_to_dict`.
"""

from dataclasses import dataclass
from typing import Any, Sequence, Union

from wirework.domain import ComponentDefinition

__all__ = [
    "Leaf",
    "Merge",
    "Provide",
    "CompositionNode",
    "CompositionPlan",
    "build_plan",
    "plan_to_dict",
    "plan_from_dict",
    "format_plan",
]


@dataclass(frozen=True)
class Leaf:
    component: str


@dataclass(frozen=True)
class Merge:
    children: tuple["CompositionNode", ...]


@dataclass(frozen=True)
class Provide:
    node: "CompositionNode"
    provider: str


CompositionNode = Union[Leaf, Merge, Provide]


@dataclass(frozen=True)
class CompositionPlan:
    """A composition tree together with the partition it was built from.

    Attributes:
        root: The top-level merge.
        independent: Components with no requirement satisfied inside the plan.
        dependent: Components with at least one requirement satisfied inside it.
        provider_only: Independent components that are only reachable through
            a dependent component's ``Provide`` wrapper.
    """

    root: Merge
    independent: tuple[str, ...]
    dependent: tuple[str, ...]
    provider_only: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return len(self.root.children) == 0


def build_plan(resolved: Sequence[ComponentDefinition]) -> CompositionPlan:
    """Build the composition plan for a resolved component list.

    Independent components that merely provide for a dependent component are
    left out of the top level, since the dependent component's wrapper already
    includes them. Each dependent component is wrapped in one ``Provide`` per
    internally satisfied requirement, in ``requires`` order; a dependent
    component whose requirements all lie outside the plan is emitted unwrapped.
    A component that provides one of its own requirements does not count as
    its own internal provider, so that requirement alone leaves it independent.

    Args:
        resolved: Components in dependency order, as produced by
            :func:`wirework.resolver.resolve`.

    Returns:
        The :class:`CompositionPlan`.
    """
    provider_of: dict[str, ComponentDefinition] = {}
    for component in resolved:
        if component.provides is not None:
            provider_of[component.provides] = component

    def internal_providers(component: ComponentDefinition) -> list[ComponentDefinition]:
        providers = []
        for requirement in component.requires:
            provider = provider_of.get(requirement)
            if provider is not None and provider.name != component.name and provider not in providers:
                providers.append(provider)
        return providers

    independent: list[ComponentDefinition] = []
    dependent: list[ComponentDefinition] = []
    for component in resolved:
        if internal_providers(component):
            dependent.append(component)
        else:
            independent.append(component)

    provider_only: set[str] = {
        provider.name for component in dependent for provider in internal_providers(component)
    }

    children: list[CompositionNode] = [
        Leaf(component.name) for component in independent if component.name not in provider_only
    ]
    for component in dependent:
        node: CompositionNode = Leaf(component.name)
        for provider in internal_providers(component):
            node = Provide(node, provider.name)
        children.append(node)

    return CompositionPlan(
        Merge(tuple(children)),
        tuple(component.name for component in independent),
        tuple(component.name for component in dependent),
        tuple(component.name for component in independent if component.name in provider_only),
    )


def plan_to_dict(node: CompositionNode) -> dict[str, Any]:
    """Serialize a composition tree to JSON-compatible data.

    Example:
        >>> plan_to_dict(Provide(Leaf("Cache"), "Db"))
        {'kind': 'provide', 'node': {'kind': 'leaf', 'component': 'Cache'}, 'provider': 'Db'}
    """
    if isinstance(node, Leaf):
        return {"kind": "leaf", "component": node.component}
    if isinstance(node, Merge):
        return {"kind": "merge", "children": [plan_to_dict(child) for child in node.children]}
    if isinstance(node, Provide):
        return {"kind": "provide", "node": plan_to_dict(node.node), "provider": node.provider}
    raise TypeError(f"{node!r} is not a composition node")


def plan_from_dict(data: dict[str, Any]) -> CompositionNode:
    """Inverse of :func:`plan_to_dict`.

    Raises:
        ValueError: If ``data`` does not describe a composition node.
    """
    kind = data.get("kind")
    if kind == "leaf":
        return Leaf(data["component"])
    if kind == "merge":
        return Merge(tuple(plan_from_dict(child) for child in data["children"]))
    if kind == "provide":
        return Provide(plan_from_dict(data["node"]), data["provider"])
    raise ValueError(f"Unknown composition node kind {kind!r}")


def format_plan(node: CompositionNode) -> str:
    """Render a composition tree as a compact expression.

    Example:
        >>> format_plan(Merge((Leaf("Logger"), Provide(Leaf("Cache"), "Config"))))
        'merge(Logger, Cache.provide(Config))'
    """
    if isinstance(node, Leaf):
        return node.component
    if isinstance(node, Merge):
        return f"merge({', '.join(format_plan(child) for child in node.children)})"
    if isinstance(node, Provide):
        return f"{format_plan(node.node)}.provide({node.provider})"
    raise TypeError(f"{node!r} is not a composition node")
