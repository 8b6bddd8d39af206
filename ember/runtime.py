"""The C runtime library every generated program is linked against.

Ember programs only ever need four container types and a few clock
helpers, so the runtime is a fixed block of C that is pasted in front of
each translation unit. Its API is what generated programs rely on:

* `List`  - growable int list: `new_list`, `list_of`, `append`,
  `list_len`, `print_list`, `slice_arr`
* `Tuple` - fixed int tuple: `new_tuple`, `tuple_of`, `print_tuple`
* `Dict`  - string-keyed int dictionary: `new_dict`, `dset`, `dget`,
  `print_dict`
* clocks  - `time_now`, `date_now`, `clock_now`

`slice_arr` is never generated; programs reach it through raw C lines
such as `int* head = slice_arr(xs.data, 0, 2)`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .types import VarType


RUNTIME_PREAMBLE = r'''#include <stdio.h>
#include <stdlib.h>
#include <string.h>
#include <stdarg.h>
#include <stdbool.h>
#include <math.h>
#include <time.h>

typedef struct { int *data; int size; int cap; } List;
typedef struct { int *data; int size; } Tuple;
typedef struct { char **keys; int *vals; int size; int cap; } Dict;

static List new_list(void) {
    List l;
    l.size = 0;
    l.cap = 4;
    l.data = (int *)malloc(l.cap * sizeof(int));
    return l;
}

static void append(List *l, int v) {
    if (l->size >= l->cap) {
        l->cap *= 2;
        l->data = (int *)realloc(l->data, l->cap * sizeof(int));
    }
    l->data[l->size++] = v;
}

static List list_of(int n, ...) {
    List l = new_list();
    va_list ap;
    va_start(ap, n);
    for (int i = 0; i < n; i++) append(&l, va_arg(ap, int));
    va_end(ap);
    return l;
}

static int list_len(List *l) { return l->size; }

static void print_list(List l) {
    printf("[");
    for (int i = 0; i < l.size; i++) printf(i ? ", %d" : "%d", l.data[i]);
    printf("]\n");
}

static int *slice_arr(int *a, int s, int e) {
    int n = e - s;
    if (n < 0) n = 0;
    int *r = (int *)malloc((n + 1) * sizeof(int));
    memcpy(r, a + s, n * sizeof(int));
    return r;
}

static Tuple new_tuple(void) {
    Tuple t;
    t.size = 0;
    t.data = NULL;
    return t;
}

static Tuple tuple_of(int n, ...) {
    Tuple t;
    t.size = n;
    t.data = (int *)malloc((n > 0 ? n : 1) * sizeof(int));
    va_list ap;
    va_start(ap, n);
    for (int i = 0; i < n; i++) t.data[i] = va_arg(ap, int);
    va_end(ap);
    return t;
}

static void print_tuple(Tuple t) {
    printf("(");
    for (int i = 0; i < t.size; i++) printf(i ? ", %d" : "%d", t.data[i]);
    printf(")\n");
}

static Dict new_dict(void) {
    Dict d;
    d.size = 0;
    d.cap = 8;
    d.keys = (char **)malloc(d.cap * sizeof(char *));
    d.vals = (int *)malloc(d.cap * sizeof(int));
    return d;
}

static void dset(Dict *d, const char *k, int v) {
    for (int i = 0; i < d->size; i++) {
        if (strcmp(d->keys[i], k) == 0) { d->vals[i] = v; return; }
    }
    if (d->size >= d->cap) {
        d->cap *= 2;
        d->keys = (char **)realloc(d->keys, d->cap * sizeof(char *));
        d->vals = (int *)realloc(d->vals, d->cap * sizeof(int));
    }
    d->keys[d->size] = (char *)malloc(strlen(k) + 1);
    strcpy(d->keys[d->size], k);
    d->vals[d->size] = v;
    d->size++;
}

static int dget(Dict *d, const char *k) {
    for (int i = 0; i < d->size; i++) {
        if (strcmp(d->keys[i], k) == 0) return d->vals[i];
    }
    return 0;
}

static void print_dict(Dict d) {
    printf("{");
    for (int i = 0; i < d.size; i++) printf(i ? ", \"%s\": %d" : "\"%s\": %d", d.keys[i], d.vals[i]);
    printf("}\n");
}

static int time_now(void) { return (int)time(NULL); }
static int date_now(void) { return (int)time(NULL); }
static double clock_now(void) { return (double)clock() / CLOCKS_PER_SEC; }
'''

# Rewrites applied to expression text before emission.
TIME_FUNCTIONS: Dict[str, str] = {
    'time.now()': 'time_now()',
    'date.now()': 'date_now()',
    'clock.now()': 'clock_now()',
}

PRINTERS: Dict[VarType, str] = {
    VarType.LIST: 'print_list',
    VarType.TUPLE: 'print_tuple',
    VarType.DICT: 'print_dict',
}


@dataclass(frozen=True)
class Intrinsic:
    name: str
    arity: int
    container: VarType  # type the first argument must have

    def __repr__(self) -> str:
        return f"<intrinsic {self.name}>"


INTRINSICS: Dict[str, Intrinsic] = {
    'append': Intrinsic('append', 2, VarType.LIST),
    'dset': Intrinsic('dset', 3, VarType.DICT),
    'dget': Intrinsic('dget', 2, VarType.DICT),
}


def substitute_time(text: str) -> str:
    for call, replacement in TIME_FUNCTIONS.items():
        text = text.replace(call, replacement)
    return text
