"""
Service registry for the pipeline's object graph.

Each service is built once, on first use, by a factory that receives the
container and resolves whatever it depends on. Tests register a double
with register_instance before anything asks for the real one.
"""

from typing import Any, Callable, Dict, List, Type, TypeVar

from .exceptions import ConfigurationError

T = TypeVar('T')

Factory = Callable[['Container'], Any]


class Container:
    """
    Lazily built singletons keyed by type.

    Example:
        container = Container()
        container.register(RetryPolicy, lambda c: RetryPolicy(max_attempts=3))
        container.register(StageRunner, lambda c: StageRunner(c.resolve(ItemStore)))
        container.register_instance(ItemStore, InMemoryItemStore())

        runner = container.resolve(StageRunner)
    """

    def __init__(self):
        self._factories: Dict[Type, Factory] = {}
        self._instances: Dict[Type, Any] = {}
        self._resolving: List[Type] = []

    def register(self, interface: Type[T], factory: Callable[['Container'], T]) -> None:
        """Register a factory; re-registering drops an already built instance."""
        self._factories[interface] = factory
        self._instances.pop(interface, None)

    def register_instance(self, interface: Type[T], instance: T) -> None:
        self._instances[interface] = instance

    def resolve(self, interface: Type[T]) -> T:
        """
        Return the instance for ``interface``, building it on first use.

        Raises:
            KeyError: If nothing is registered for ``interface``
            ConfigurationError: If building it needs itself
        """
        if interface in self._instances:
            return self._instances[interface]

        factory = self._factories.get(interface)
        if factory is None:
            raise KeyError(f"Service {interface.__name__} not registered")

        if interface in self._resolving:
            chain = " -> ".join(t.__name__ for t in self._resolving + [interface])
            raise ConfigurationError(f"Circular dependency: {chain}")

        self._resolving.append(interface)
        try:
            instance = factory(self)
        finally:
            self._resolving.pop()

        self._instances[interface] = instance
        return instance

