"""
Script Scanner - Flags bundled interpreted scripts and their third-party imports.

A bundled script implies a required interpreter even when no invocation of
it is visible anywhere else in the plugin. Imports of packages outside the
language's standard library imply an install step on top of that.
"""

import posixpath
import re
from typing import List, Optional

from .types import Evidence
from ..rules.rule_loader import RuleLoader, get_rule_loader


# Python 3.10+ standard library modules
PYTHON_STDLIB_MODULES = frozenset({
    "__future__", "_thread", "abc", "argparse", "array", "ast", "asyncio",
    "atexit", "base64", "binascii", "bisect", "builtins", "bz2", "calendar",
    "cmath", "cmd", "code", "codecs", "codeop", "collections", "colorsys",
    "compileall", "concurrent", "configparser", "contextlib", "contextvars",
    "copy", "copyreg", "cProfile", "csv", "ctypes", "curses", "dataclasses",
    "datetime", "decimal", "difflib", "dis", "email", "enum", "errno",
    "faulthandler", "fcntl", "filecmp", "fileinput", "fnmatch", "fractions",
    "ftplib", "functools", "gc", "getopt", "getpass", "gettext", "glob",
    "graphlib", "grp", "gzip", "hashlib", "heapq", "hmac", "html", "http",
    "idlelib", "imaplib", "importlib", "inspect", "io", "ipaddress",
    "itertools", "json", "keyword", "linecache", "locale", "logging", "lzma",
    "mailbox", "math", "mimetypes", "mmap", "modulefinder", "multiprocessing",
    "netrc", "ntpath", "numbers", "operator", "os", "pathlib", "pdb", "pickle",
    "pickletools", "platform", "plistlib", "poplib", "posixpath", "pprint",
    "profile", "pstats", "pty", "pwd", "py_compile", "pyclbr", "pydoc",
    "queue", "quopri", "random", "re", "readline", "reprlib", "resource",
    "runpy", "sched", "secrets", "select", "selectors", "shelve", "shlex",
    "shutil", "signal", "site", "smtplib", "socket", "socketserver", "sqlite3",
    "ssl", "stat", "statistics", "string", "stringprep", "struct",
    "subprocess", "sys", "sysconfig", "syslog", "tabnanny", "tarfile",
    "tempfile", "termios", "test", "textwrap", "threading", "time", "timeit",
    "tkinter", "token", "tokenize", "tomllib", "trace", "traceback",
    "tracemalloc", "tty", "turtle", "types", "typing", "unicodedata",
    "unittest", "urllib", "uuid", "venv", "warnings", "wave", "weakref",
    "webbrowser", "xml", "xmlrpc", "zipapp", "zipfile", "zipimport", "zlib",
    "zoneinfo",
})

# Node.js built-in modules (importable with or without the node: prefix)
NODE_BUILTIN_MODULES = frozenset({
    "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
    "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
    "events", "fs", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "perf_hooks", "process", "punycode", "querystring",
    "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
    "trace_events", "tty", "url", "util", "v8", "vm", "wasi",
    "worker_threads", "zlib",
})

NODE_EXTENSIONS = frozenset({".js", ".mjs", ".cjs"})

# `import X`, `import X as Y`, `import X, Z`
_IMPORT_RE = re.compile(r"^import\s+([\w.]+(?:\s+as\s+\w+)?(?:\s*,\s*[\w.]+(?:\s+as\s+\w+)?)*)")

# `from X import Y`, `from X.sub import Y` (relative imports never match)
_FROM_IMPORT_RE = re.compile(r"^from\s+(\w+)[\w.]*\s+import\b")

_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_DYNAMIC_IMPORT_RE = re.compile(r"""\bimport\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_ESM_IMPORT_RE = re.compile(r"""^\s*import\s+(?:[^'"]*?\bfrom\s*)?['"]([^'"]+)['"]""")
_ESM_EXPORT_RE = re.compile(r"""^\s*export\s+[^'"]*?\bfrom\s*['"]([^'"]+)['"]""")


def classify_script_file(
    relative_path: str, rule_loader: Optional[RuleLoader] = None
) -> Optional[Evidence]:
    """
    Classify a script file by its extension.

    Returns:
        Script evidence, or None for non-script files.
    """
    if not isinstance(relative_path, str):
        return None

    loader = rule_loader or get_rule_loader()
    ext = posixpath.splitext(relative_path)[1].lower()
    rule = loader.script_rules.get(ext)
    if rule is None:
        return None

    return Evidence(
        source="script",
        file=relative_path,
        signal=rule.signal,
        detail=f"Script file detected: {relative_path}",
        impact=rule.make_impact(),
    )


def _python_modules_in_line(line: str) -> List[str]:
    """Return top-level module names imported by one line of Python."""
    stripped = line.strip()

    match = _FROM_IMPORT_RE.match(stripped)
    if match:
        return [match.group(1)]

    match = _IMPORT_RE.match(stripped)
    if match:
        modules = []
        for part in match.group(1).split(","):
            name = part.strip().split()[0] if part.strip() else ""
            if name:
                modules.append(name.split(".")[0])
        return modules

    return []


def scan_python_imports(
    content: str, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """
    Parse Python source for import statements and return evidence for
    every distinct third-party (non-stdlib) top-level module.
    """
    if not isinstance(content, str) or not content:
        return []

    loader = rule_loader or get_rule_loader()
    rule = loader.import_rules.get("python")
    if rule is None:
        return []

    first_seen = {}
    for line_num, line in enumerate(content.splitlines(), 1):
        for module in _python_modules_in_line(line):
            if module in PYTHON_STDLIB_MODULES or module in first_seen:
                continue
            first_seen[module] = line_num

    return [
        Evidence(
            source="script-import",
            file=file_path,
            line=line_num,
            signal=f"{rule.signal}{module}",
            detail=f'Third-party Python import "{module}" requires pip install',
            impact=rule.make_impact(),
        )
        for module, line_num in first_seen.items()
    ]


def _node_package_name(specifier: str) -> Optional[str]:
    """Return the npm package name for a bare specifier, None for local/builtin."""
    if not specifier or specifier.startswith((".", "/", "node:")):
        return None
    if re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", specifier):
        return None

    parts = specifier.split("/")
    if specifier.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            return None
        name = f"{parts[0]}/{parts[1]}"
    else:
        name = parts[0]

    if name in NODE_BUILTIN_MODULES:
        return None
    return name


def scan_node_imports(
    content: str, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """
    Parse JavaScript source for require()/import statements and return
    evidence for every distinct package that is not a Node.js built-in.
    """
    if not isinstance(content, str) or not content:
        return []

    loader = rule_loader or get_rule_loader()
    rule = loader.import_rules.get("node")
    if rule is None:
        return []

    first_seen = {}
    for line_num, line in enumerate(content.splitlines(), 1):
        specifiers = _REQUIRE_RE.findall(line) + _DYNAMIC_IMPORT_RE.findall(line)
        for esm_re in (_ESM_IMPORT_RE, _ESM_EXPORT_RE):
            esm = esm_re.match(line)
            if esm:
                specifiers.append(esm.group(1))

        for specifier in specifiers:
            package = _node_package_name(specifier)
            if package and package not in first_seen:
                first_seen[package] = line_num

    return [
        Evidence(
            source="script-import",
            file=file_path,
            line=line_num,
            signal=f"{rule.signal}{package}",
            detail=f'Third-party Node.js package "{package}" requires npm install',
            impact=rule.make_impact(),
        )
        for package, line_num in first_seen.items()
    ]


def scan_script_imports(
    content: str, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """Dispatch import scanning on the script's extension."""
    ext = posixpath.splitext(file_path)[1].lower()
    if ext == ".py":
        return scan_python_imports(content, file_path, rule_loader)
    if ext in NODE_EXTENSIONS:
        return scan_node_imports(content, file_path, rule_loader)
    return []
