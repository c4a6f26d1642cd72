# src/rates_core/curves/handle.py

from __future__ import annotations

from typing import Callable, List, Optional

from ..errors import PreconditionError
from .types import YieldCurve


class YieldCurveHandle:
    """
    Relinkable reference to a yield curve shared by several models.

    Term-structure-consistent models register a callback; re-linking the
    handle notifies them so they can rebuild their fitting parameter.
    Lattices already built from the old curve are not touched.
    """

    def __init__(self, curve: Optional[YieldCurve] = None):
        self._curve = curve
        self._observers: List[Callable[[], None]] = []

    @property
    def empty(self) -> bool:
        return self._curve is None

    @property
    def current(self) -> YieldCurve:
        if self._curve is None:
            raise PreconditionError("empty yield curve handle")
        return self._curve

    def link_to(self, curve: YieldCurve) -> None:
        self._curve = curve
        self.notify_observers()

    def register_observer(self, callback: Callable[[], None]) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def unregister_observer(self, callback: Callable[[], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def notify_observers(self) -> None:
        for callback in list(self._observers):
            callback()

    # pass-throughs so a handle can be used where a curve is expected

    def discount(self, t: float) -> float:
        return self.current.discount(t)

    def forward_rate(self, t1: float, t2: float) -> float:
        return self.current.forward_rate(t1, t2)

    def instantaneous_forward(self, t: float) -> float:
        return self.current.instantaneous_forward(t)
