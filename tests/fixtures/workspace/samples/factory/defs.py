from dataclasses import dataclass
from typing import Protocol


@dataclass
class Widget:
    name: str


class WidgetFactory(Protocol):
    def __call__(self, name: str) -> Widget: ...


class WidgetMaker:
    def __call__(self, name: str) -> Widget:
        return Widget(name)


class Sprocket:
    def __init__(self, name: str, size: int) -> None:
        self.name = name
        self.size = size
