"""
模块依赖图

维护 模块 -> 依赖 与 模块 -> 被依赖 两张邻接表。
环检测在写入之前针对“现有图 + 假设的新边”执行，
检测失败时图保持不变。

本类不加锁，由 ModuleRegistry 在自己的锁内调用。
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from modgate.core.exceptions import UnknownDependencyError


class DependencyGraph:
    """有向无环依赖图"""

    def __init__(self) -> None:
        # 保持插入顺序 = 注册顺序
        self._dependencies: dict[str, tuple[str, ...]] = {}
        self._dependents: dict[str, list[str]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._dependencies

    def __len__(self) -> int:
        return len(self._dependencies)

    def nodes(self) -> list[str]:
        return list(self._dependencies)

    def add_node(self, name: str, dependencies: Sequence[str]) -> None:
        """
        写入节点及其依赖边

        所有依赖必须已经在图中；任一缺失时抛出 UnknownDependencyError 且不写入。
        """
        for dep in dependencies:
            if dep not in self._dependencies:
                raise UnknownDependencyError(name, dep)

        self._dependencies[name] = tuple(dependencies)
        self._dependents.setdefault(name, [])
        for dep in dependencies:
            if name not in self._dependents[dep]:
                self._dependents[dep].append(name)

    def find_cycle(self, name: str, dependencies: Sequence[str]) -> list[str] | None:
        """
        判断加入 name -> dependencies 后是否成环

        深度优先遍历，递归栈上的节点被再次访问即为环。
        返回环路径（首尾相同），无环返回 None。不修改图。
        """
        visited: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()

        def edges(node: str) -> Iterable[str]:
            if node == name:
                return dependencies
            return self._dependencies.get(node, ())

        def visit(node: str) -> list[str] | None:
            if node in on_stack:
                return stack[stack.index(node) :] + [node]
            if node in visited:
                return None

            visited.add(node)
            stack.append(node)
            on_stack.add(node)
            for dep in edges(node):
                cycle = visit(dep)
                if cycle is not None:
                    return cycle
            stack.pop()
            on_stack.discard(node)
            return None

        return visit(name)

    def has_cycle(self, name: str, dependencies: Sequence[str]) -> bool:
        return self.find_cycle(name, dependencies) is not None

    def dependencies(self, name: str) -> list[str]:
        return list(self._dependencies.get(name, ()))

    def dependents(self, name: str) -> set[str]:
        """直接依赖 name 的模块"""
        return set(self._dependents.get(name, ()))

    def enabled_dependents(self, name: str, is_enabled: Callable[[str], bool]) -> list[str]:
        return [d for d in self._dependents.get(name, ()) if is_enabled(d)]

    def can_remove(self, name: str, is_enabled: Callable[[str], bool]) -> bool:
        """没有任何已启用的直接依赖方时才可安全禁用"""
        return not self.enabled_dependents(name, is_enabled)

    def topological_order(self) -> list[str]:
        """依赖在前的稳定拓扑序（同层按注册顺序）"""
        remaining = {name: len(set(deps)) for name, deps in self._dependencies.items()}
        order: list[str] = []
        ready = [name for name, count in remaining.items() if count == 0]
        while ready:
            node = ready.pop(0)
            order.append(node)
            for dependent in self._dependents.get(node, ()):
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    ready.append(dependent)
        return order

    def clear(self) -> None:
        self._dependencies.clear()
        self._dependents.clear()
