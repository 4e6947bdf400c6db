"""Built-in classification rules used when a catalog has no annotation-config block."""

DEFAULT_FEATURE_PATTERN = "{controller}-{action}"
DEFAULT_DIRECT_MARKER = "EntryPoint"

DEFAULT_CLASS_MARKERS = [
    "RestController",
    "Controller",
    "ApiController",
    "WebController",
    "Endpoint",
    "Service",
    "Component",
]

# (marker, feature pattern, aliases)
DEFAULT_METHOD_MAPPINGS = [
    ("GetMapping", "{controller}-retrieval", ["Get", "HttpGet"]),
    ("PostMapping", "{controller}-creation", ["Post", "HttpPost"]),
    ("PutMapping", "{controller}-modification", ["Put", "HttpPut"]),
    ("DeleteMapping", "{controller}-deletion", ["Delete", "HttpDelete"]),
    ("PatchMapping", "{controller}-modification", ["Patch", "HttpPatch"]),
    ("RequestMapping", "{controller}-management", ["Mapping"]),
    ("ApiEndpoint", "{controller}-api", ["Endpoint"]),
    ("BusinessLogic", "{controller}-logic", ["Logic"]),
]

PATTERN_PLACEHOLDERS = frozenset({"controller", "method", "class", "action", "value"})

# Leading verb of a method name -> {action} value
ACTION_VERBS = [
    (("create", "add"), "creation"),
    (("update", "edit"), "modification"),
    (("delete", "remove"), "deletion"),
    (("get", "find", "list"), "retrieval"),
]
DEFAULT_ACTION = "management"
