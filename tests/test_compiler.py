import pytest

from ember.compiler import Transpiler, transpile, compile_file
from ember.config import Limits
from ember.types import VarType


def main_body(result):
    return result.c_source.split('int main(void) {\n', 1)[1]


def messages(diagnostics):
    return [(d.line, d.message) for d in diagnostics]


def test_brace_block_closed_by_end_warns_once():
    result = transpile('if x > 1 {\n    print(x)\nend\n')
    assert result.ok
    assert messages(result.warnings) == [(3, "'if' block opened at line 1 with '{' closed by 'end'")]
    assert main_body(result) == (
        '    if (x > 1) {\n'
        '        printf("%d\\n", (int)(x));\n'
        '    }\n'
        '    return 0;\n'
        '}\n'
    )


@pytest.mark.parametrize('mode', ['optimized', 'raw'])
def test_string_loop_closed_by_end(mode):
    result = transpile('for c in "ab":\n    print(c)\nend\nprint(1)\n', mode)
    assert not result.diagnostics.entries
    assert main_body(result) == (
        '    {\n'
        '        const char* _str_c_1 = "ab";\n'
        "        for (int _idx_c_1 = 0; _str_c_1[_idx_c_1] != '\\0'; _idx_c_1++) {\n"
        '            int c = _str_c_1[_idx_c_1];\n'
        '            printf("%d\\n", (int)(c));\n'
        '        }\n'
        '    }\n'
        '    printf("%d\\n", (int)(1));\n'
        '    return 0;\n'
        '}\n'
    )


def test_brace_string_loop_closed_by_end_warns_once():
    result = transpile('string s = "hey"\nfor ch in s {\n    print(ch)\nend\nprint(2)\n')
    assert result.ok
    assert messages(result.warnings) == [(4, "'for-in' block opened at line 2 with '{' closed by 'end'")]
    assert main_body(result).splitlines()[-5:] == [
        '        }',
        '    }',
        '    printf("%d\\n", (int)(2));',
        '    return 0;',
        '}',
    ]


def test_dedent_ends_ignored_main_header():
    result = transpile('func main:\n    print(1)\nprint(2)\nend\n')
    assert messages(result.errors) == [(4, "'end' has no matching block")]
    assert messages(result.warnings) == [
        (1, "'func main' is ignored; top-level statements already form the program entry point"),
    ]


def test_end_still_closes_ignored_main_header():
    result = transpile('func main:\n    print(1)\nend\nprint(2)\n')
    assert result.ok
    assert main_body(result) == (
        '    printf("%d\\n", (int)(1));\n'
        '    printf("%d\\n", (int)(2));\n'
        '    return 0;\n'
        '}\n'
    )


def test_slice_arr_passes_through_as_raw_c():
    result = transpile('list xs = [1, 2, 3]\nint* head = slice_arr(xs.data, 0, 2)\n')
    assert result.ok
    assert '    int* head = slice_arr(xs.data, 0, 2);' in result.c_source.splitlines()


def test_unmatched_closers():
    result = transpile('}\nend\n')
    assert messages(result.errors) == [(1, "unmatched '}'"), (2, "'end' has no matching block")]


def test_continuation_without_if():
    result = transpile('while 1:\n    x = 1\nelse:\n    x = 2\nelif y:\n')
    assert messages(result.errors) == [
        (3, "'else' without matching 'if'"),
        (5, "'elif' without matching 'if'"),
    ]


def test_duplicate_function_keeps_both_bodies():
    result = transpile('func f:\n    print(1)\nfunc f:\n    print(2)\n')
    assert messages(result.errors) == [(3, "function 'f' already defined at line 1")]
    assert [fn.line for fn in result.functions] == [1, 3]
    assert result.c_source.count('void f(void) {') == 2


def test_nested_function_is_an_error():
    result = transpile('func outer {\n    func inner {\n        print(1)\n    }\n    print(2)\n}\n')
    assert messages(result.errors) == [(2, "function 'inner' cannot be defined inside another function")]
    assert [fn.name for fn in result.functions] == ['outer']
    outer = result.functions.get('outer')
    assert len(outer.body) == 1


def test_optimized_mode_closes_unclosed_indent_blocks_silently():
    result = transpile('if 1:\n    while 0:\n        print(1)\n')
    assert result.ok
    assert main_body(result) == (
        '    if (1) {\n'
        '        while (0) {\n'
        '            printf("%d\\n", (int)(1));\n'
        '        }\n'
        '    }\n'
        '    return 0;\n'
        '}\n'
    )


def test_unclosed_brace_block_is_an_error_in_every_mode():
    result = transpile('print(0)\nwhile 1 {\n    print(1)\n')
    assert messages(result.errors) == [(2, "unclosed 'while' block opened at line 2")]


def test_too_many_variables_reported_once():
    source = ''.join(f'int v{i} = {i}\n' for i in range(6))
    result = Transpiler(limits=Limits(max_vars=3)).transpile(source)
    assert messages(result.errors) == [(4, 'too many variables (limit 3)')]
    assert len(result.symbols) == 3


def test_too_many_functions_reported_once():
    source = ''.join(f'func f{i}:\n    print({i})\n' for i in range(4)) + 'print(9)\n'
    result = Transpiler(limits=Limits(max_functions=2)).transpile(source)
    assert messages(result.errors) == [(5, 'too many functions (limit 2)')]
    assert [fn.name for fn in result.functions] == ['f0', 'f1']
    assert main_body(result) == '    printf("%d\\n", (int)(9));\n    return 0;\n}\n'


def test_too_deep_nesting_reported_once():
    source = ''.join(' ' * (4 * i) + 'if 1:\n' for i in range(4)) + ' ' * 16 + 'print(1)\n'
    result = Transpiler(limits=Limits(max_depth=2)).transpile(source)
    assert messages(result.errors) == [(3, 'blocks nested too deeply (limit 2)')]


def test_fragment_limit_reported_once():
    source = 'print(1)\n' * 5
    result = Transpiler(limits=Limits(max_fragments=3)).transpile(source)
    assert messages(result.errors) == [(4, 'generated program too large (limit 3 fragments)')]
    assert len(result.main) == 3


def test_diagnostic_cap_does_not_open_the_gate():
    source = 'func main:\n' * 3 + '}\n' * 4
    result = Transpiler(limits=Limits(max_diagnostics=3)).transpile(source)
    assert len(result.diagnostics) == 3
    assert not result.errors
    assert not result.ok


def test_untyped_const_declaration_is_inferred():
    result = transpile('int base = 2\nconst limit = 10\n')
    assert messages(result.errors) == [(2, "'const' must be followed by a type (int, float, bool, string, list, dict, tuple)")]
    assert result.symbols.lookup('limit') is VarType.INT
    assert result.symbols.is_const('limit')
    assert '    const int limit = 10;' in result.c_source.splitlines()


def test_debug_trace(tmp_path):
    trace = tmp_path / 'debug.txt'
    Transpiler(debug_level=3, debug_file=str(trace)).transpile('if 1:\n    int x = 2\n')
    text = trace.read_text(encoding='utf-8')
    assert "open 'if' block opened at line 1" in text
    assert 'register x: int' in text
    assert 'emit int x = 2;' in text
    assert "line 2 (indent 4): 'int x = 2'" in text
    assert "close 'if' block opened at line 1" in text


def test_debug_modes_force_tracing(tmp_path):
    transpiler = Transpiler('debug_raw', debug_file=str(tmp_path / 'debug.txt'))
    assert transpiler.debug_level == 3
    assert transpiler.mode.raw
    assert not Transpiler('optimized').debug_level


def test_compile_file(tmp_path):
    path = tmp_path / 'hello.em'
    path.write_text('print("hi")\n', encoding='utf-8')
    result = compile_file(path, 'raw')
    assert result.ok
    assert result.mode.name == 'raw'
    assert '    printf("%s\\n", "hi");' in result.c_source.splitlines()
