"""
Directive module registry for beanparse.

Validates inter-module dependencies and flattens modules into the directive
dispatch order: modules in registration order, directives within a module
in declaration order. That order is load-bearing; when two definitions can
both match a line, the earlier one wins.
"""

from __future__ import annotations

from . import ir


def validate_module_dependencies(modules: list[ir.DirectiveModule]) -> list[str]:
    """
    Check that every declared dependency names a registered module.

    All violations are collected rather than stopping at the first one.

    Args:
        modules: Modules of one parser configuration

    Returns:
        Human-readable violations; empty when the module set is valid
    """
    errors: list[str] = []
    module_names = {m.name for m in modules}

    for module in modules:
        for dep in module.dependencies:
            if dep not in module_names:
                errors.append(f"Module '{module.name}' depends on missing module '{dep}'")

    return errors


def flatten_directives(modules: list[ir.DirectiveModule]) -> list[ir.DirectiveDefinition]:
    """All directive definitions in dispatch order."""
    return [directive for module in modules for directive in module.directives]


def all_directive_kinds(modules: list[ir.DirectiveModule]) -> list[str]:
    """Directive kinds in dispatch order (duplicates kept)."""
    return [directive.kind for directive in flatten_directives(modules)]


def get_module_by_name(
    modules: list[ir.DirectiveModule], name: str
) -> ir.DirectiveModule | None:
    for module in modules:
        if module.name == name:
            return module
    return None
