import json

from ember.assembler import Function, FunctionTable, assemble, render_body
from ember.compiler import transpile
from ember.ir import OpenIf, OpenElse, OpenFor, OpenScope, CloseScope, Statement, OutputStream
from ember.ir_json import program_to_obj, program_from_obj, fragment_from_obj
from ember.runtime import RUNTIME_PREAMBLE

import pytest


def test_render_body_indents_by_structure():
    fragments = [
        OpenIf('a'),
        Statement('x = 1'),
        OpenElse(),
        OpenScope(),
        OpenFor('int i = 0', 'i < 2', 'i++'),
        Statement('y()'),
        CloseScope(),
        CloseScope(),
        CloseScope(),
    ]
    assert render_body(fragments) == [
        '    if (a) {',
        '        x = 1;',
        '    } else {',
        '        {',
        '            for (int i = 0; i < 2; i++) {',
        '                y();',
        '            }',
        '        }',
        '    }',
    ]


def test_assembly_order():
    body = OutputStream()
    body.emit(Statement('puts("f")'))
    source = assemble([Function('f', 1, body)], [Statement('f()')])
    assert source.startswith(RUNTIME_PREAMBLE)
    rest = source[len(RUNTIME_PREAMBLE):]
    assert rest == (
        'void f(void);\n'
        '\n'
        'void f(void) {\n'
        '    puts("f");\n'
        '}\n'
        '\n'
        'int main(void) {\n'
        '    f();\n'
        '    return 0;\n'
        '}\n'
    )


def test_function_table_is_bounded_and_keeps_duplicates():
    table = FunctionTable(capacity=2)
    assert table.add(Function('f', 1))
    assert table.add(Function('f', 5))
    assert not table.add(Function('g', 9))
    assert [fn.line for fn in table] == [1, 5]
    assert table.get('f').line == 1
    assert 'g' not in table


def test_ir_json_reassembles_identically():
    result = transpile(
        'func twice:\n'
        '    for i = 1 to 2:\n'
        '        print(i)\n'
        'list xs = [1]\n'
        'for v in xs:\n'
        '    if v > 0:\n'
        '        print("pos")\n'
        '    else:\n'
        '        print("neg")\n'
        'twice()\n'
    )
    assert result.ok
    data = json.loads(json.dumps(program_to_obj(result.functions, result.main)))
    functions, main = program_from_obj(data)
    assert [fn.name for fn in functions] == ['twice']
    assert assemble(functions, main) == result.c_source


def test_ir_json_rejects_unknown_fragments():
    with pytest.raises(ValueError):
        fragment_from_obj({'type': 'Goto', 'label': 'x'})
    with pytest.raises(ValueError):
        program_from_obj({'type': 'Module'})
