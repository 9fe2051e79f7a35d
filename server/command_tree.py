from __future__ import annotations

"""Command path tree (trie) and dispatcher.

A ``CommandTree`` owns every sub-command path registered under one root slash
command (e.g. ``/cleaningitem``). Paths are declared up front with
``add_path`` and mix literal keywords with at most one trailing typed capture:

    tree = CommandTree("cleaningitem")
    tree.add_path("/cleaningitem give @a", give_all)
    tree.add_path("/cleaningitem give player", give_player, ArgumentType.TEXT)
    tree.add_path("/cleaningitem name name", set_name, ArgumentType.TEXT, greedy=True)

Dispatch walks the tree one token per depth:
1. A literal child matching the token (case-insensitive) always wins.
2. Otherwise the node's single typed child validates the token (or, for a
   greedy capture, every remaining token joined by spaces).
3. Otherwise the walk fails as an unknown sub-command.

The walk succeeds only when the tokens run out on a node carrying a handler.
Failures are reported to the sender through ``message_service`` and returned
as a ``DispatchResult``; they never raise and never touch the tree.

Registration mistakes (two typed captures of different types at the same
depth, two different handlers for the same path) are programming errors and
raise ``CommandConfigurationError`` while the command is being built.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from argument_validator import ArgumentType, ValidationResult, validate
from constants import COMMAND_PREFIX
from message_service import MessageID, MessageType, send_message

logger = logging.getLogger(__name__)


class CommandConfigurationError(Exception):
    """Raised when a path registration conflicts with the existing tree."""


# --- Path specs -------------------------------------------------------------

@dataclass(frozen=True)
class LiteralSegment:
    """A fixed keyword matched case-insensitively."""
    text: str


@dataclass(frozen=True)
class TypedSegment:
    """A capture validated against ``arg_type``; ``name`` is only shown in usage."""
    name: str
    arg_type: ArgumentType
    greedy: bool = False


Segment = Union[LiteralSegment, TypedSegment]


@dataclass(frozen=True)
class PathSpec:
    root: str
    segments: Tuple[Segment, ...]

    @property
    def greedy_tail(self) -> bool:
        if not self.segments:
            return False
        last = self.segments[-1]
        return isinstance(last, TypedSegment) and last.greedy

    @classmethod
    def parse(cls, pattern: str, arg_type: Optional[ArgumentType] = None, greedy: bool = False) -> "PathSpec":
        """Parse ``"/root tok1 tok2 ..."``.

        With ``arg_type`` None every word after the root is a literal. Otherwise
        the last word names the typed capture and everything before it is
        literal.
        """
        words = str(pattern or "").split()
        if not words:
            raise CommandConfigurationError("Empty command pattern.")
        root = words[0]
        if root.startswith(COMMAND_PREFIX):
            root = root[len(COMMAND_PREFIX):]
        if not root:
            raise CommandConfigurationError(f"Pattern '{pattern}' has no root command.")
        rest = words[1:]
        if arg_type is None:
            if greedy:
                raise CommandConfigurationError(f"Pattern '{pattern}' is greedy but declares no argument type.")
            return cls(root, tuple(LiteralSegment(w) for w in rest))
        if not rest:
            raise CommandConfigurationError(f"Pattern '{pattern}' declares an argument type but has no capture.")
        segments: List[Segment] = [LiteralSegment(w) for w in rest[:-1]]
        segments.append(TypedSegment(rest[-1], arg_type, greedy))
        return cls(root, tuple(segments))


# --- Tree -------------------------------------------------------------------

Handler = Callable[["CommandTuple"], Any]


@dataclass
class TypedEdge:
    name: str
    arg_type: ArgumentType
    greedy: bool
    node: "CommandNode"


@dataclass
class CommandNode:
    # Display text used in usage hints ("give", "<player>", "<name...>")
    label: str = ""
    literal_children: Dict[str, "CommandNode"] = field(default_factory=dict)
    typed_child: Optional[TypedEdge] = None
    handler: Optional[Handler] = None

    def is_leaf(self) -> bool:
        return not self.literal_children and self.typed_child is None


@dataclass(frozen=True)
class CommandTuple:
    """What a handler receives.

    ``args`` is the full token list after the root command word, so handlers
    can index positionally (``args[0]`` is the first sub-command). ``values``
    holds the converted typed captures in walk order.
    """
    sender: Any
    args: Tuple[str, ...]
    values: Tuple[Any, ...] = ()
    alias: str = ""

    @property
    def value(self) -> Any:
        """The last typed capture, or None for literal-only paths."""
        return self.values[-1] if self.values else None


class DispatchStatus(Enum):
    MATCHED = "matched"
    UNKNOWN_PATH = "unknown_path"
    INVALID_ARGUMENT = "invalid_argument"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class DispatchResult:
    status: DispatchStatus
    command: Optional[CommandTuple] = None
    handler: Optional[Handler] = None

    @property
    def ok(self) -> bool:
        return self.status is DispatchStatus.MATCHED


# Validation failures are reported with a message specific to the target type
_VALIDATION_MESSAGES: Dict[ArgumentType, MessageID] = {
    ArgumentType.BOOLEAN: MessageID.ERROR_VALIDATION_BOOLEAN,
}


class CommandTree:
    """All sub-command paths of one root slash command."""

    def __init__(self, name: str):
        name = str(name or "").strip()
        if name.startswith(COMMAND_PREFIX):
            name = name[len(COMMAND_PREFIX):]
        if not name:
            raise CommandConfigurationError("A command tree needs a root command name.")
        self.name = name
        self.root = CommandNode(label=name)
        # handler -> argument types it was registered with (copy-paste detector)
        self._handler_arg_types: Dict[Any, Set[ArgumentType]] = {}

    # --- registration ---

    def add_path(self, pattern: str, handler: Handler,
                 arg_type: Optional[ArgumentType] = None, greedy: bool = False) -> None:
        """Insert ``pattern`` into the tree and attach ``handler`` to its end."""
        if handler is None:
            raise CommandConfigurationError(f"Pattern '{pattern}' has no handler.")
        spec = PathSpec.parse(pattern, arg_type, greedy)
        if spec.root.lower() != self.name.lower():
            raise CommandConfigurationError(
                f"Pattern '{pattern}' does not belong to command '/{self.name}'.")

        node = self.root
        for segment in spec.segments:
            if isinstance(segment, LiteralSegment):
                node = self._literal_child(node, segment)
            else:
                node = self._typed_child(node, segment, pattern)

        if node.handler is not None and node.handler != handler:
            raise CommandConfigurationError(f"Pattern '{pattern}' is already bound to another handler.")
        node.handler = handler
        self._note_handler(handler, arg_type, pattern)
        logger.debug(f"Registered path '{pattern}' on /{self.name}")

    def _literal_child(self, node: CommandNode, segment: LiteralSegment) -> CommandNode:
        key = segment.text.lower()
        child = node.literal_children.get(key)
        if child is None:
            child = CommandNode(label=segment.text)
            node.literal_children[key] = child
        return child

    def _typed_child(self, node: CommandNode, segment: TypedSegment, pattern: str) -> CommandNode:
        edge = node.typed_child
        if edge is None:
            label = f"<{segment.name}...>" if segment.greedy else f"<{segment.name}>"
            edge = TypedEdge(segment.name, segment.arg_type, segment.greedy, CommandNode(label=label))
            node.typed_child = edge
            return edge.node
        if edge.arg_type is not segment.arg_type or edge.greedy != segment.greedy:
            raise CommandConfigurationError(
                f"Pattern '{pattern}' declares a {segment.arg_type.value} capture"
                f"{' (greedy)' if segment.greedy else ''} where a {edge.arg_type.value} capture"
                f"{' (greedy)' if edge.greedy else ''} already exists.")
        return edge.node

    def _note_handler(self, handler: Handler, arg_type: Optional[ArgumentType], pattern: str) -> None:
        if arg_type is None:
            return
        try:
            seen = self._handler_arg_types.setdefault(handler, set())
        except TypeError:
            # Unhashable callables cannot be tracked
            return
        if seen and arg_type not in seen:
            logger.warning(
                f"Handler {getattr(handler, '__name__', handler)!r} on '{pattern}' expects "
                f"{arg_type.value} but is also registered for "
                f"{', '.join(sorted(t.value for t in seen))} captures; is it the intended handler?")
        seen.add(arg_type)

    # --- dispatch ---

    def execute(self, sender: Any, invoked_alias: str, args: Sequence[str]) -> DispatchResult:
        """Route ``args`` (tokens after the root word) and run exactly one handler."""
        args = tuple(str(a) for a in args)
        alias = invoked_alias or self.name
        node = self.root
        labels: List[str] = []
        values: List[Any] = []
        i = 0
        while i < len(args):
            token = args[i]
            child = node.literal_children.get(token.lower())
            if child is not None:
                node = child
                labels.append(child.label)
                i += 1
                continue

            edge = node.typed_child
            if edge is not None:
                raw = " ".join(args[i:]) if edge.greedy else token
                result = validate(raw, edge.arg_type)
                if not result.ok:
                    self._report_invalid(sender, alias, labels, node, raw, result)
                    return DispatchResult(DispatchStatus.INVALID_ARGUMENT)
                values.append(result.value)
                node = edge.node
                labels.append(node.label)
                i = len(args) if edge.greedy else i + 1
                continue

            if node.handler is not None:
                # A complete command followed by surplus words
                self._report_usage(sender, alias, labels, node)
                return DispatchResult(DispatchStatus.INCOMPLETE)
            send_message(sender, MessageType.ERROR, MessageID.ERROR_UNKNOWN_SUBCOMMAND,
                         token, self._usage_text(alias, labels, node))
            logger.debug(f"/{alias}: unknown sub-command '{token}' after {labels}")
            return DispatchResult(DispatchStatus.UNKNOWN_PATH)

        if node.handler is None:
            self._report_usage(sender, alias, labels, node)
            return DispatchResult(DispatchStatus.INCOMPLETE)

        command = CommandTuple(sender=sender, args=args, values=tuple(values), alias=alias)
        logger.debug(f"/{alias}: dispatching {list(args)} to {getattr(node.handler, '__name__', node.handler)}")
        node.handler(command)
        return DispatchResult(DispatchStatus.MATCHED, command, node.handler)

    def _report_invalid(self, sender: Any, alias: str, labels: List[str], node: CommandNode,
                        raw: str, result: ValidationResult) -> None:
        edge = node.typed_child
        message_id = _VALIDATION_MESSAGES.get(edge.arg_type)
        if message_id is None:
            self._report_usage(sender, alias, labels, node)
            return
        send_message(sender, MessageType.ERROR, message_id, raw, result.error)
        logger.debug(f"/{alias}: rejected '{raw}' for {edge.arg_type.value} capture <{edge.name}>")

    def _report_usage(self, sender: Any, alias: str, labels: List[str], node: CommandNode) -> None:
        send_message(sender, MessageType.ERROR, MessageID.ERROR_COMMAND_USAGE,
                     self._usage_text(alias, labels, node))

    # --- usage & completion ---

    def usage_lines(self, alias: Optional[str] = None, labels: Sequence[str] = (),
                    node: Optional[CommandNode] = None) -> List[str]:
        """Every complete form reachable from ``node`` (the root by default)."""
        alias = alias or self.name
        if node is None:
            node = self.root
        base = " ".join([f"{COMMAND_PREFIX}{alias}", *labels])
        lines: List[str] = []
        self._collect_usage(node, base, lines)
        return lines

    def _collect_usage(self, node: CommandNode, prefix: str, out: List[str]) -> None:
        if node.handler is not None:
            out.append(prefix)
        for child in node.literal_children.values():
            self._collect_usage(child, f"{prefix} {child.label}", out)
        if node.typed_child is not None:
            typed = node.typed_child.node
            self._collect_usage(typed, f"{prefix} {typed.label}", out)

    def _usage_text(self, alias: str, labels: Sequence[str], node: CommandNode) -> str:
        return "Usage: " + " | ".join(self.usage_lines(alias, labels, node))

    def complete(self, args: Sequence[str],
                 typed_candidates: Optional[Callable[[TypedEdge], Iterable[str]]] = None) -> List[str]:
        """Tab-completion candidates for the last (partial) token of ``args``.

        Literal children of the node reached by the preceding tokens are offered
        directly; a typed child asks ``typed_candidates`` for its suggestions.
        """
        args = [str(a) for a in args] or [""]
        partial = args[-1].lower()
        node = self._walk_quietly(args[:-1])
        if node is None:
            return []
        options = [child.label for child in node.literal_children.values()]
        edge = node.typed_child
        if edge is not None and typed_candidates is not None:
            options.extend(typed_candidates(edge))
        return sorted({o for o in options if o.lower().startswith(partial)})

    def _walk_quietly(self, tokens: Sequence[str]) -> Optional[CommandNode]:
        node = self.root
        for token in tokens:
            child = node.literal_children.get(token.lower())
            if child is not None:
                node = child
                continue
            edge = node.typed_child
            # Nothing follows a greedy capture
            if edge is None or edge.greedy or not validate(token, edge.arg_type).ok:
                return None
            node = edge.node
        return node
