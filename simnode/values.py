"""Per-node value variants.

A stored value is either a single scalar or a set of scalars. Sets only come
into existence through ``add_value``, which is how merge-add works.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Union


@dataclass(frozen=True)
class ScalarValue:
	value: Any

	def add_value(self, value: Any) -> "SetValue":
		"""Promote to a set holding the current and the new value."""
		return SetValue(frozenset((self.value, value)))

	def unwrap(self) -> Any:
		return self.value

	def members(self) -> FrozenSet[Any]:
		return frozenset((self.value,))


@dataclass(frozen=True)
class SetValue:
	items: FrozenSet[Any]

	def add_value(self, value: Any) -> "SetValue":
		if value in self.items:
			return self
		return SetValue(self.items | {value})

	def unwrap(self) -> set:
		# callers get their own copy
		return set(self.items)

	def members(self) -> FrozenSet[Any]:
		return self.items


NodeValue = Union[ScalarValue, SetValue]


def wrap(value: Any) -> NodeValue:
	"""Wrap a raw value coming from a caller or a scenario file."""
	if isinstance(value, (ScalarValue, SetValue)):
		return value
	if isinstance(value, (set, frozenset)):
		return SetValue(frozenset(value))
	return ScalarValue(value)
