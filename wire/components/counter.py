"""
Counter - the smallest useful interactive component.

Actions: increment, decrement, setCount(n), reset.
Dispatches 'count-changed' after every change and listens for
'counter-reset' from other components.
"""

from wire.core.component import SimpleInteractiveComponent
from wire.core.markup import Element, el
from wire.core.stateValues import getInt


class Counter(SimpleInteractiveComponent):
    """Integer counter with a configurable step."""

    componentName = 'counter'

    def __init__(self, componentId: str = 'counter', step: int = 1):
        super().__init__()
        self._componentId = componentId
        self.property('count', 0)
        self.property('step', step)

    @property
    def componentId(self) -> str:
        return self._componentId

    def prepare(self):
        self.action('increment', self.increment)
        self.action('decrement', self.decrement)
        self.action('setCount', self.setCount)
        self.action('reset', self.reset)

    def getListeners(self):
        return {'counter-reset': lambda payload: self.reset()}

    def updated(self, property: str):
        # wire:model may deliver "5" from a text input
        if property in ('count', 'step'):
            self.set(property, getInt(self.getState(), property))

    @property
    def count(self) -> int:
        return self.get('count', 0)

    def increment(self):
        self._change(self.count + self.get('step', 1))

    def decrement(self):
        self._change(self.count - self.get('step', 1))

    def setCount(self, value):
        self._change(getInt({'value': value}, 'value', self.count))

    def reset(self):
        self._change(0)

    def _change(self, count: int):
        self.set('count', count)
        self.dispatch('count-changed', {'count': count})

    def render(self):
        return el('div',
                  Element('button', {'wire:click': 'decrement'}, ['-']),
                  el('span', str(self.count), class_='count'),
                  Element('button', {'wire:click': 'increment'}, ['+']),
                  class_='counter')
