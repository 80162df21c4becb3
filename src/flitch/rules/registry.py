"""
Rule Registry

Maps stable rule ids to rule factories. The default registry is filled
when flitch.rules is imported; the rule manager looks rules up here and
nowhere else.
"""

from typing import Callable, Dict, List, Optional, Type

from flitch.errors import UnknownRule
from flitch.rules.base import Rule
from flitch.standard.definition import RuleConfig

RuleFactory = Callable[[RuleConfig], Rule]


class RuleRegistry:
    """Registry of rule factories keyed by rule id."""

    def __init__(self):
        self._factories: Dict[str, RuleFactory] = {}

    def add(self, rule_id: str, factory: RuleFactory) -> None:
        if not rule_id:
            raise ValueError("rule id must not be empty")
        if rule_id in self._factories:
            raise ValueError(f"rule '{rule_id}' is already registered")
        self._factories[rule_id] = factory

    def register(self, rule_class: Type[Rule]) -> Type[Rule]:
        """Class decorator registering a Rule subclass under its rule_id."""
        self.add(rule_class.rule_id, rule_class)
        return rule_class

    def get(self, rule_id: str) -> Optional[RuleFactory]:
        return self._factories.get(rule_id)

    def create(self, config: RuleConfig) -> Rule:
        """
        Instantiate the rule for a config.

        Raises:
            UnknownRule: If nothing is registered under config.rule_id.
            RuleConfigError: If the rule rejects the configured options.
        """
        factory = self._factories.get(config.rule_id)
        if factory is None:
            raise UnknownRule(config.rule_id)
        return factory(config)

    def ids(self) -> List[str]:
        return list(self._factories)

    def copy(self) -> "RuleRegistry":
        clone = RuleRegistry()
        clone._factories = dict(self._factories)
        return clone

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._factories

    def __len__(self) -> int:
        return len(self._factories)


default_registry = RuleRegistry()
register = default_registry.register
