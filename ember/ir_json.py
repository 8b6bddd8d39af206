"""JSON serialization/deserialization for Ember IR.

This module converts between the fragment dataclasses of `ember.ir`
and plain Python dict/list structures suitable for JSON encoding. A
whole program (functions plus the main stream) round-trips, so a
compiled program can be dumped with `--emit-ir`, inspected or edited,
and assembled back into C with `--ir`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

from .assembler import Function
from .ir import (
    Fragment,
    Declare,
    PrintFormat,
    PrintCall,
    CallStmt,
    Statement,
    OpenIf,
    OpenElif,
    OpenElse,
    OpenWhile,
    OpenFor,
    OpenScope,
    CloseScope,
    OutputStream,
)


def fragment_to_obj(frag: Fragment) -> Dict[str, Any]:
    if isinstance(frag, Declare):
        return {"type": "Declare", "ctype": frag.ctype, "name": frag.name, "init": frag.init, "const": frag.const}
    if isinstance(frag, PrintFormat):
        return {"type": "PrintFormat", "fmt": frag.fmt, "arg": frag.arg}
    if isinstance(frag, PrintCall):
        return {"type": "PrintCall", "printer": frag.printer, "arg": frag.arg}
    if isinstance(frag, CallStmt):
        return {"type": "CallStmt", "func": frag.func, "args": list(frag.args)}
    if isinstance(frag, Statement):
        return {"type": "Statement", "text": frag.text}
    if isinstance(frag, OpenIf):
        return {"type": "OpenIf", "condition": frag.condition}
    if isinstance(frag, OpenElif):
        return {"type": "OpenElif", "condition": frag.condition}
    if isinstance(frag, OpenElse):
        return {"type": "OpenElse"}
    if isinstance(frag, OpenWhile):
        return {"type": "OpenWhile", "condition": frag.condition}
    if isinstance(frag, OpenFor):
        return {"type": "OpenFor", "init": frag.init, "condition": frag.condition, "step": frag.step}
    if isinstance(frag, OpenScope):
        return {"type": "OpenScope"}
    if isinstance(frag, CloseScope):
        return {"type": "CloseScope"}

    raise TypeError(f"Unsupported fragment for serialization: {type(frag).__name__}")


def fragment_from_obj(obj: Any) -> Fragment:
    if not isinstance(obj, dict):
        raise TypeError("Invalid IR object")
    t = obj.get("type")
    if t == "Declare":
        return Declare(ctype=obj["ctype"], name=obj["name"], init=obj.get("init"), const=bool(obj.get("const", False)))
    if t == "PrintFormat":
        return PrintFormat(fmt=obj["fmt"], arg=obj["arg"])
    if t == "PrintCall":
        return PrintCall(printer=obj["printer"], arg=obj["arg"])
    if t == "CallStmt":
        return CallStmt(func=obj["func"], args=list(obj["args"]))
    if t == "Statement":
        return Statement(text=obj["text"])
    if t == "OpenIf":
        return OpenIf(condition=obj["condition"])
    if t == "OpenElif":
        return OpenElif(condition=obj["condition"])
    if t == "OpenElse":
        return OpenElse()
    if t == "OpenWhile":
        return OpenWhile(condition=obj["condition"])
    if t == "OpenFor":
        return OpenFor(init=obj["init"], condition=obj["condition"], step=obj["step"])
    if t == "OpenScope":
        return OpenScope()
    if t == "CloseScope":
        return CloseScope()

    raise ValueError(f"Unknown IR fragment type: {t}")


def program_to_obj(functions: Iterable[Function], main: Iterable[Fragment]) -> Dict[str, Any]:
    return {
        "type": "Program",
        "functions": [
            {"name": fn.name, "line": fn.line, "body": [fragment_to_obj(f) for f in fn.body]}
            for fn in functions
        ],
        "main": [fragment_to_obj(f) for f in main],
    }


def program_from_obj(obj: Any) -> Tuple[List[Function], List[Fragment]]:
    if not isinstance(obj, dict) or obj.get("type") != "Program":
        raise ValueError("Invalid IR program object")
    functions: List[Function] = []
    for entry in obj.get("functions", []):
        body = OutputStream(max(OutputStream().capacity, len(entry["body"])))
        for f in entry["body"]:
            body.emit(fragment_from_obj(f))
        functions.append(Function(name=entry["name"], line=int(entry.get("line", 0)), body=body))
    main = [fragment_from_obj(f) for f in obj.get("main", [])]
    return functions, main
