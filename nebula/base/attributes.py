"""
Flatten an XML response into a path-keyed attribute map.

OpenNebula answers ``one.*.info`` calls with an XML document whose shape
is only loosely defined. :func:`flatten` turns the subtree under a named
root element into a flat ``dict`` keyed by slash-joined element paths::

    >>> flatten(b"<VM><TEMPLATE><CPU>1</CPU></TEMPLATE></VM>", "VM")
    {'TEMPLATE/CPU': '1'}

Element attributes are ignored. Text that an element mixes with child
elements is trimmed and joined with single spaces, as are the values of
repeated elements sharing the same path. Comments, processing
instructions and CDATA sections end the text run they interrupt.
"""

from __future__ import annotations

from xml.parsers import expat

from .exceptions import MalformedDocumentError, RootElementNotFoundError

PATH_SEPARATOR = "/"
VALUE_SEPARATOR = " "

# expat reports namespaced names as "uri local"
_NS_SEPARATOR = " "


def _local_name(name: str) -> str:
    return name.rsplit(_NS_SEPARATOR, 1)[-1]


class _RootClosed(Exception):
    """Raised from the end handler to stop parsing at the root's end tag."""


class _SubtreeCollector:
    """expat handlers collecting the text runs below one root element."""

    def __init__(self, root_element: str) -> None:
        self.root_element = root_element
        self.found = False
        self.attributes: dict[str, str] = {}
        self.path: list[str] = []
        self._run: list[str] = []

    def attach(self, parser) -> None:
        parser.StartElementHandler = self.start
        parser.EndElementHandler = self.end
        parser.CharacterDataHandler = self.data
        parser.CommentHandler = self.boundary
        parser.ProcessingInstructionHandler = self.boundary
        parser.StartCdataSectionHandler = self.boundary
        parser.EndCdataSectionHandler = self.boundary

    def _flush(self) -> None:
        # expat may deliver one run in several chunks
        value = "".join(self._run).strip()
        self._run.clear()
        if not value or not self.path:
            return
        key = PATH_SEPARATOR.join(self.path)
        if key in self.attributes:
            value = self.attributes[key] + VALUE_SEPARATOR + value
        self.attributes[key] = value

    def start(self, name: str, _attrs) -> None:
        if not self.found:
            self.found = _local_name(name) == self.root_element
            return
        self._flush()
        self.path.append(_local_name(name))

    def end(self, name: str) -> None:
        if not self.found:
            return
        self._flush()
        if not self.path:
            raise _RootClosed
        self.path.pop()

    def data(self, text: str) -> None:
        if self.found:
            self._run.append(text)

    def boundary(self, *_args) -> None:
        if self.found:
            self._flush()


def flatten(document: bytes | str | None, root_element: str) -> dict[str, str]:
    """Flatten the first *root_element* subtree of *document*.

    Args:
        document: Raw XML response. ``None`` and empty input are accepted
            and treated as a document without the root element.
        root_element: Local name of the element whose descendants are
            extracted. The element itself never appears in the keys.

    Returns:
        Mapping of ``PARENT/CHILD`` paths to trimmed text values.

    Raises:
        RootElementNotFoundError: *root_element* does not occur in the
            document, or the document ends or breaks before it does
            (always the case for an empty name).
        MalformedDocumentError: The document is truncated or invalid
            after the root element opened and before it closed.
    """
    if not root_element:
        raise RootElementNotFoundError("No root element name given")
    if not document:
        raise RootElementNotFoundError(f"Element <{root_element}> not found in empty document")

    collector = _SubtreeCollector(root_element)
    parser = expat.ParserCreate(namespace_separator=_NS_SEPARATOR)
    collector.attach(parser)

    try:
        parser.Parse(document, True)
    except _RootClosed:
        return collector.attributes
    except expat.ExpatError as exc:
        if not collector.found:
            raise RootElementNotFoundError(
                f"Element <{root_element}> not found before invalid XML: {exc}"
            ) from exc
        raise MalformedDocumentError(f"Invalid XML document: {exc}") from exc

    # expat rejects unclosed elements, so a clean parse never opened the root
    raise RootElementNotFoundError(f"Element <{root_element}> not found in document")
