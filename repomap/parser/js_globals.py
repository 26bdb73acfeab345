"""
Global symbol names of the JavaScript runtime environments.

Calls whose callee (or, for member calls, whose root object or property)
is one of these names are treated as calls into the platform rather than
into the project, and never produce reference tags.

The sets cover:
  * ES2021 built-in globals (constructors, namespaces, global functions)
  * Node.js globals
  * Browser globals (window functions, common DOM/Web API entry points)
  * Method names of built-in prototypes (String, Array, Object, Map, ...),
    matched only against the property of member calls
"""

ES_GLOBALS: frozenset[str] = frozenset({
    "AggregateError", "Array", "ArrayBuffer", "Atomics", "BigInt", "BigInt64Array",
    "BigUint64Array", "Boolean", "DataView", "Date", "decodeURI", "decodeURIComponent",
    "encodeURI", "encodeURIComponent", "Error", "escape", "eval", "EvalError",
    "FinalizationRegistry", "Float32Array", "Float64Array", "Function", "globalThis",
    "Infinity", "Int16Array", "Int32Array", "Int8Array", "Intl", "isFinite", "isNaN",
    "JSON", "Map", "Math", "NaN", "Number", "Object", "parseFloat", "parseInt",
    "Promise", "Proxy", "RangeError", "ReferenceError", "Reflect", "RegExp", "Set",
    "SharedArrayBuffer", "String", "Symbol", "SyntaxError", "TypeError", "Uint16Array",
    "Uint32Array", "Uint8Array", "Uint8ClampedArray", "undefined", "unescape",
    "URIError", "WeakMap", "WeakRef", "WeakSet",
})

NODE_GLOBALS: frozenset[str] = frozenset({
    "__dirname", "__filename", "AbortController", "AbortSignal", "atob", "Blob",
    "BroadcastChannel", "btoa", "Buffer", "ByteLengthQueuingStrategy", "clearImmediate",
    "clearInterval", "clearTimeout", "CompressionStream", "console", "CountQueuingStrategy",
    "crypto", "Crypto", "CryptoKey", "CustomEvent", "DecompressionStream", "DOMException",
    "Event", "EventTarget", "exports", "fetch", "File", "FormData", "global", "Headers",
    "MessageChannel", "MessageEvent", "MessagePort", "module", "navigator", "Navigator",
    "performance", "Performance", "process", "queueMicrotask", "ReadableStream",
    "Request", "require", "Response", "setImmediate", "setInterval", "setTimeout",
    "structuredClone", "SubtleCrypto", "TextDecoder", "TextDecoderStream", "TextEncoder",
    "TextEncoderStream", "TransformStream", "URL", "URLSearchParams", "WebAssembly",
    "WebSocket", "WritableStream",
})

BROWSER_GLOBALS: frozenset[str] = frozenset({
    "addEventListener", "alert", "cancelAnimationFrame", "cancelIdleCallback",
    "caches", "clientInformation", "close", "closed", "confirm", "createImageBitmap",
    "customElements", "devicePixelRatio", "dispatchEvent", "document", "Document",
    "DocumentFragment", "DOMParser", "Element", "FileReader", "focus", "frames",
    "getComputedStyle", "getSelection", "history", "History", "HTMLElement",
    "HTMLInputElement", "HTMLCanvasElement", "Image", "indexedDB", "innerHeight",
    "innerWidth", "IntersectionObserver", "localStorage", "location", "Location",
    "matchMedia", "MutationObserver", "moveBy", "moveTo", "Node", "NodeList",
    "Notification", "open", "opener", "Option", "outerHeight", "outerWidth", "parent",
    "postMessage", "print", "prompt", "removeEventListener", "requestAnimationFrame",
    "requestIdleCallback", "ResizeObserver", "resizeBy", "resizeTo", "screen",
    "scroll", "scrollBy", "scrollTo", "self", "sessionStorage", "showModalDialog",
    "speechSynthesis", "stop", "Storage", "top", "visualViewport", "Window", "window",
    "Worker", "XMLHttpRequest", "XMLSerializer", "XPathEvaluator",
})

PROTOTYPE_METHODS: frozenset[str] = frozenset({
    # Object.prototype
    "constructor", "hasOwnProperty", "isPrototypeOf", "propertyIsEnumerable",
    "toLocaleString", "toString", "valueOf",
    # Function.prototype
    "apply", "bind", "call",
    # String.prototype
    "at", "charAt", "charCodeAt", "codePointAt", "concat", "endsWith", "includes",
    "indexOf", "lastIndexOf", "localeCompare", "match", "matchAll", "normalize",
    "padEnd", "padStart", "repeat", "replace", "replaceAll", "search", "slice",
    "split", "startsWith", "substring", "substr", "toLocaleLowerCase",
    "toLocaleUpperCase", "toLowerCase", "toUpperCase", "trim", "trimEnd", "trimStart",
    # Array.prototype
    "copyWithin", "entries", "every", "fill", "filter", "find", "findIndex",
    "findLast", "findLastIndex", "flat", "flatMap", "forEach", "join", "keys", "map",
    "pop", "push", "reduce", "reduceRight", "reverse", "shift", "some", "sort",
    "splice", "unshift", "values", "toReversed", "toSorted", "toSpliced", "with",
    # Number.prototype
    "toExponential", "toFixed", "toPrecision",
    # RegExp.prototype
    "exec", "test", "compile",
    # Date.prototype
    "getDate", "getDay", "getFullYear", "getHours", "getMilliseconds", "getMinutes",
    "getMonth", "getSeconds", "getTime", "getTimezoneOffset", "getUTCDate",
    "getUTCDay", "getUTCFullYear", "getUTCHours", "getUTCMilliseconds",
    "getUTCMinutes", "getUTCMonth", "getUTCSeconds", "getYear", "setDate",
    "setFullYear", "setHours", "setMilliseconds", "setMinutes", "setMonth",
    "setSeconds", "setTime", "setUTCDate", "setUTCFullYear", "setUTCHours",
    "setUTCMilliseconds", "setUTCMinutes", "setUTCMonth", "setUTCSeconds", "setYear",
    "toDateString", "toISOString", "toJSON", "toLocaleDateString",
    "toLocaleTimeString", "toTimeString", "toUTCString", "toGMTString",
    # Map / Set / WeakMap / WeakSet
    "add", "clear", "delete", "get", "has", "set",
    # Promise.prototype
    "catch", "finally", "then",
})

GLOBAL_NAMES: frozenset[str] = ES_GLOBALS | NODE_GLOBALS | BROWSER_GLOBALS

ALL_GLOBALS: frozenset[str] = GLOBAL_NAMES | PROTOTYPE_METHODS


def is_global_symbol(name: str | None) -> bool:
    """Check whether a bare identifier names a runtime global."""
    return bool(name) and name in GLOBAL_NAMES


def is_global_member(name: str | None) -> bool:
    """Check whether a member-call property is a global or a built-in prototype method."""
    return bool(name) and name in ALL_GLOBALS
