"""PascalCase type references inside the plan's code regions."""

from __future__ import annotations

import re

from planproof.analysis.schemas import RawReference
from planproof.analysis.text import code_regions

BUILTIN_TYPES = frozenset(
    {
        # language and runtime
        "String", "Number", "Boolean", "Object", "Symbol", "BigInt",
        "Function", "Array", "Map", "Set", "WeakMap", "WeakSet", "WeakRef",
        "Promise", "Date", "RegExp", "Error", "TypeError", "RangeError",
        "SyntaxError", "Uint8Array", "Uint16Array", "Uint32Array",
        "Int8Array", "Int16Array", "Int32Array", "Float32Array",
        "Float64Array", "ArrayBuffer", "SharedArrayBuffer", "DataView",
        "Proxy", "Reflect", "JSON", "Math", "Intl", "Iterator",
        "AsyncIterator",
        # utility types
        "Record", "Partial", "Required", "Readonly", "Pick", "Omit",
        "Exclude", "Extract", "NonNullable", "ReturnType", "Parameters",
        "ConstructorParameters", "InstanceType", "ThisParameterType",
        "OmitThisParameter", "Awaited", "Uppercase", "Lowercase",
        "Capitalize", "Uncapitalize", "NoInfer", "Prettify",
        # web platform
        "Request", "Response", "Headers", "URL", "URLSearchParams",
        "HTMLElement", "HTMLDivElement", "HTMLInputElement",
        "HTMLFormElement", "HTMLButtonElement", "HTMLAnchorElement",
        "HTMLImageElement", "Element", "Node", "Document", "Window",
        "Event", "MouseEvent", "KeyboardEvent", "FormData", "Blob", "File",
        "FileReader", "AbortController", "AbortSignal", "ReadableStream",
        "WritableStream", "TransformStream", "WebSocket", "XMLHttpRequest",
        "FormEvent", "ChangeEvent", "MediaQueryList", "IntersectionObserver",
        "MutationObserver", "ResizeObserver",
        # react
        "React", "Component", "PureComponent", "JSX", "ReactNode",
        "ReactElement", "FC", "FunctionComponent", "Dispatch",
        "SetStateAction", "RefObject", "MutableRefObject", "ContextType",
        "PropsWithChildren", "PropsWithRef", "SyntheticEvent",
        "BaseSyntheticEvent",
        # node
        "Buffer", "Stream", "EventEmitter", "Readable", "Writable",
        "Transform", "Duplex", "IncomingMessage", "ServerResponse",
        "Server", "ChildProcess", "Worker",
        # frameworks
        "NextRequest", "NextResponse", "NextPage", "GetServerSideProps",
        "GetStaticProps", "PrismaClient", "Prisma", "Express", "Router",
        "Mock", "SpyInstance", "Console",
        "Iterable", "AsyncIterable", "IterableIterator",
        "AsyncIterableIterator", "Generator", "AsyncGenerator",
        "PromiseLike",
    }
)

# Built-in method names that follow a PascalCase receiver in prose code
COMMON_METHODS = frozenset(
    {
        "map", "filter", "reduce", "forEach", "find", "some", "every",
        "includes", "push", "pop", "shift", "unshift", "splice", "slice",
        "concat", "flat", "flatMap", "sort", "reverse", "fill", "at",
        "indexOf", "lastIndexOf", "findIndex", "get", "set", "has",
        "delete", "clear", "entries", "values", "keys", "then", "catch",
        "finally", "resolve", "reject", "toString", "valueOf", "toJSON",
        "assign", "freeze", "from", "of", "isArray", "parse", "stringify",
        "log", "error", "warn", "info", "debug", "join", "split", "replace",
        "match", "search", "trim", "length", "size", "next", "return",
        "throw", "addEventListener", "removeEventListener", "createElement",
        "getElementById", "querySelector", "groupBy", "apply", "call",
        "bind",
    }
)

# PascalCase words from headings and prose that are never types
COMMON_WORDS = frozenset(
    {
        "Create", "Update", "Delete", "Get", "Set", "Add", "Remove",
        "Fetch", "Post", "Put", "Patch", "List", "Find", "Search", "Sort",
        "Filter", "Group", "Handle", "Process", "Parse", "Build", "Run",
        "Test", "Testing", "Check", "Validate", "Verify", "Init", "Setup",
        "Start", "Stop", "Deploy", "Install", "Enable", "Disable",
        "Configure", "Implement", "Migrate", "Refactor", "Move", "Copy",
        "Rename", "Extract", "Merge", "Integrate", "Define", "Register",
        "Mount", "Connect", "Initialize", "Top", "Bottom", "Left", "Right",
        "First", "Last", "Next", "Previous", "Current", "Default",
        "Aggregate", "Calculate", "Compute", "Total", "Average", "Each",
        "All", "Any", "Some", "None", "Every", "Step", "Phase", "Stage",
        "Level", "Section", "Overview", "Summary", "Details",
        "Description", "Implementation", "Note", "Todo", "Fix", "Bug",
        "Feature", "Issue", "This", "That", "Also", "Then", "Here",
        "There", "Where", "When",
    }
)

_PASCAL_RE = re.compile(r"^[A-Z][a-zA-Z0-9]+$")
_GENERIC_SINGLE_RE = re.compile(r"^[A-Z]$")

_ANNOTATION_RE = re.compile(r"(?::|\bas)\s+([A-Z]\w+)")
_GENERIC_RE = re.compile(r"<([A-Z]\w+(?:\s*,\s*[A-Z]\w+)*)>")
_STATIC_ACCESS_RE = re.compile(r"\b([A-Z]\w+)\.([a-z]\w*)")
_BRACKET_ACCESS_RE = re.compile(r"([A-Z]\w+)\[[\"'](\w+)[\"']\]")
_HERITAGE_RE = re.compile(r"(?:extends|implements)\s+([A-Z]\w+)")
_NEW_RE = re.compile(r"new\s+([A-Z]\w+)\s*\(")


def is_pascal_case(name: str) -> bool:
    """PascalCase with at least one lowercase letter (acronyms excluded)."""
    return bool(_PASCAL_RE.match(name)) and any(c.islower() for c in name)


def is_ignored_type(name: str) -> bool:
    return (
        name in BUILTIN_TYPES
        or name in COMMON_WORDS
        or bool(_GENERIC_SINGLE_RE.match(name))
    )


def has_type_create_signal(type_name: str, plan_text: str) -> bool:
    """True when the plan declares or announces ``type_name`` itself."""
    name = re.escape(type_name)
    kinds = r"(?:interface|type|enum|class)"
    prose = (
        rf"create\s+(?:a\s+)?(?:new\s+)?{kinds}\s+`?{name}`?",
        rf"define\s+(?:a\s+)?(?:new\s+)?{kinds}\s+`?{name}`?",
        rf"add\s+(?:a\s+)?(?:new\s+)?{kinds}\s+`?{name}`?",
        rf"new\s+{kinds}\s+`?{name}`?",
    )
    if any(re.search(p, plan_text, re.IGNORECASE) for p in prose):
        return True
    declarations = (
        rf"(?:export\s+)?interface\s+{name}\s*(?:extends|<|\{{)",
        rf"(?:export\s+)?type\s+{name}\s*(?:<[^>]*>)?\s*=",
        rf"(?:export\s+)?(?:const\s+)?enum\s+{name}\s*\{{",
        rf"(?:export\s+)?(?:abstract\s+)?class\s+{name}\s*(?:extends|implements|<|\{{)",
        rf"(?:export\s+)?(?:default\s+)?function\s+{name}\s*[(<]",
        rf"(?:export\s+)?const\s+{name}\s*[:=]",
    )
    return any(re.search(p, plan_text) for p in declarations)


def extract_type_refs(plan_text: str) -> list[RawReference]:
    """Type and ``Type.member`` references the plan expects to exist.

    Built-ins, common prose words and types the plan itself creates are
    left out.
    """
    text = code_regions(plan_text)
    refs: dict[str, RawReference] = {}
    created: dict[str, bool] = {}

    def add(
        type_name: str, member: str | None = None, raw: str | None = None
    ) -> None:
        if not is_pascal_case(type_name) or is_ignored_type(type_name):
            return
        key = f"{type_name}.{member}" if member else type_name
        if key in refs:
            return
        if type_name not in created:
            created[type_name] = has_type_create_signal(type_name, plan_text)
        if created[type_name]:
            return
        refs[key] = RawReference(
            raw=raw or key, kind="member" if member else "type",
            owner=type_name, name=member,
        )

    for m in _ANNOTATION_RE.finditer(text):
        add(m.group(1))
    for m in _GENERIC_RE.finditer(text):
        for part in m.group(1).split(","):
            add(part.strip())
    for m in _STATIC_ACCESS_RE.finditer(text):
        if m.group(2) not in COMMON_METHODS:
            add(m.group(1), m.group(2))
    for m in _BRACKET_ACCESS_RE.finditer(text):
        add(m.group(1), m.group(2), f"{m.group(1)}['{m.group(2)}']")
    for m in _HERITAGE_RE.finditer(text):
        add(m.group(1))
    for m in _NEW_RE.finditer(text):
        add(m.group(1))

    return list(refs.values())
