"""
Heuristic programming-language guesser for code blocks.

The table below is advisory: it is not exhaustive, only deterministic.
Entries are tried top to bottom and the first match wins, so languages whose
signatures overlap (C++ vs C, TypeScript vs JavaScript) list the more
specific one first.
"""

from __future__ import annotations

import re
from typing import Optional

SHEBANG_RE = re.compile(r"^#!\s*(\S+)(?:[ \t]+(\S+))?")

_FLAGS = re.IGNORECASE | re.MULTILINE

LANGUAGE_TABLE: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, _FLAGS), tag)
    for pattern, tag in (
        (r"<\?php", "php"),
        (r"<!doctype\s+html|<html[\s>]", "html"),
        (r"\\documentclass|\\begin\{\w+\}", "latex"),
        (r"#include\s*<(?:iostream|vector|string|map|memory)>|\bstd::|\btemplate\s*<", "cpp"),
        (r"#include\s*[<\"]|\bint\s+main\s*\(|\bprintf\s*\(|\bmalloc\s*\(", "c"),
        (r"\bfn\s+\w+\s*(?:<[^>]*>)?\s*\(|\blet\s+mut\b|\bimpl\b|\bprintln!", "rust"),
        (r"^\s*package\s+main\b|\bfunc\s+\w+\s*\(|\bfmt\.Print", "go"),
        (r"\bpublic\s+static\s+void\s+main\b|\bSystem\.out\.print", "java"),
        (r"\bConsole\.Write(?:Line)?\b|^\s*using\s+System\s*;", "csharp"),
        (r"^\s*fun\s+main\s*\(|\bval\s+\w+\s*:\s*\w+\s*=", "kotlin"),
        (r"^\s*(?:def\s+\w+\s*\(.*\)\s*(?:->\s*[^:]+)?:|from\s+\w+(?:\.\w+)*\s+import\b|import\s+\w+\s*$)|\bself\.\w+|\bprint\(f?[\"']", "python"),
        (r"^\s*(?:interface|type)\s+\w+\s*(?:=|\{)|:\s*(?:string|number|boolean)\b", "typescript"),
        (r"\bconsole\.log\b|\bfunction\s*\w*\s*\(|\b(?:const|let)\s+\w+\s*=|=>\s*\{|\bdocument\.", "javascript"),
        (r"\(defun\s|\(setq\s|\(defvar\s|\(use-package\s", "emacs-lisp"),
        (r"\(defn\s|\(ns\s", "clojure"),
        (r"\(define\s", "scheme"),
        (r"^\s*main\s*=\s*do\b|::\s*\w+(?:\s*->\s*\w+)+|^\s*import\s+qualified\b", "haskell"),
        (r"^\s*let\s+rec\b|\bmatch\s+\w+\s+with\b", "ocaml"),
        (r"^\s*local\s+\w+\s*=|\bfunction\s+\w+[.:]\w+\s*\(", "lua"),
        (r"^\s*(?:select\b.+\bfrom\b|insert\s+into\b|create\s+table\b|update\s+\w+\s+set\b)", "sql"),
        (r"^\s*(?:mov|push|pop|jmp|call|syscall|xor)\s+\w+", "asm"),
        (r"^\s*(?:echo|export|sudo|cd|ls|grep|apt|pacman)\b|\bfi\s*$|\bdone\s*$|\$\{\w+\}", "sh"),
    )
)


def guess_language(code: Optional[str]) -> Optional[str]:
    """
    Guess the language tag of ``code``.

    A shebang line (after leading whitespace) always wins and yields the
    interpreter name, looking through ``/usr/bin/env``. Otherwise the first
    matching ``LANGUAGE_TABLE`` entry wins. Returns None when nothing matches.
    """
    if not code:
        return None

    m = SHEBANG_RE.match(code.lstrip())
    if m:
        interpreter = m.group(1).rsplit("/", 1)[-1]
        if interpreter == "env" and m.group(2):
            interpreter = m.group(2)
        if interpreter:
            return interpreter

    for pattern, tag in LANGUAGE_TABLE:
        if pattern.search(code):
            return tag
    return None
