from Qt.QtCore import QObject, Signal
from typing import Optional, Any


DEFAULT_OPTIONS: dict[str, Any] = {
    "default_size": 0.0,  # size given to new sections when none is passed
}


class SectionOptions(QObject):
    """Runtime options shared by the section trackers of a view

    Changing an option emits `optionsUpdated` with the keys whose values
    actually changed
    """

    optionsUpdated = Signal(list)  # list of str

    def __init__(self, opts: Optional[dict[str, Any]] = None):
        super().__init__()
        self._options: dict[str, Any] = dict(DEFAULT_OPTIONS)
        if opts is not None:
            self._options.update(opts)

    def __getitem__(self, key: str):
        return self._options[key]

    def __setitem__(self, key: str, value):
        self.update({key: value})

    def __contains__(self, key: str) -> bool:
        return key in self._options

    def update(self, opts: dict[str, Any]):
        changed = [
            key
            for key, value in opts.items()
            if key not in self._options or self._options[key] != value
        ]
        self._options.update(opts)
        if changed:
            self.optionsUpdated.emit(changed)

    def get(self, key, default=None) -> Any:
        return self._options.get(key, default)

    def keys(self):
        return self._options.keys()

    @property
    def default_size(self) -> float:
        """The default section size, clamped to >= 0"""
        return float(max(0, self._options["default_size"]))
