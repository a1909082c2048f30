"""Writers that render a resolved closure into output text.

The ``naked``, ``enums`` and ``main`` writers each produce one of the three
headers and always run together. Every other registered writer renders the
whole closure on its own and is offered as a ``--format`` of the command
line, e.g. ``json``.

Example
-------
::

    from dumpheaders.writers import get_writer

    text = get_writer("naked", namespace="Game").write(closure)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dumpheaders.resolver import Closure

__all__ = [
    "HEADER_WRITERS",
    "WriterBackend",
    "get_writer",
    "list_writers",
    "register_writer",
]

# Writers whose outputs together form one set of headers.
HEADER_WRITERS = ("naked", "enums", "main")


@runtime_checkable
class WriterBackend(Protocol):
    """Renders a closure into one artifact.

    Options such as the namespace or the line ending are constructor
    parameters. Entries of the closure that resolved to no declaration are
    skipped.
    """

    def write(self, closure: Closure) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def format_description(self) -> str: ...


# name -> writer class, in registration order
_WRITERS: dict[str, type[WriterBackend]] = {}
_loaded = False


def register_writer(name: str, writer_class: type[WriterBackend]) -> None:
    """Make ``writer_class`` available to :func:`get_writer` as ``name``.

    Writer modules call this at import time.

    :raises ValueError: If ``name`` is taken.
    """
    if name in _WRITERS:
        raise ValueError(f"Writer already registered: {name!r}")
    _WRITERS[name] = writer_class


def list_writers() -> list[str]:
    """Registered writer names in registration order."""
    _load_writers()
    return list(_WRITERS)


def get_writer(name: str, **options: object) -> WriterBackend:
    """Create the writer registered as ``name``.

    :param options: Forwarded to the writer constructor.
    :raises ValueError: If no writer has that name.
    """
    _load_writers()
    writer_class = _WRITERS.get(name)
    if writer_class is None:
        raise ValueError(f"Unknown writer: {name!r}. Available: {', '.join(_WRITERS)}")
    return writer_class(**options)


def _load_writers() -> None:
    # The writer modules import register_writer from this module, so they
    # can only be imported once it has finished loading.
    global _loaded  # pylint: disable=global-statement
    if _loaded:
        return
    _loaded = True
    import dumpheaders.writers.cpp  # noqa: F401
    import dumpheaders.writers.json  # noqa: F401
