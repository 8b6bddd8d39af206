from ember.compiler import transpile
from ember.types import VarType
from conftest import read_example, needs_gcc


def test_program_6_container_lowering():
    result = transpile(read_example('program_6.em'))
    assert result.ok, result.report()
    lines = result.c_source.splitlines()
    assert '    List xs = list_of(3, 1, 2, 3);' in lines
    assert '    append(&xs, 4);' in lines
    assert '    print_list(xs);' in lines
    assert '    printf("%d\\n", (int)(list_len(&xs)));' in lines
    assert '    Tuple t = tuple_of(2, 1, 2);' in lines
    assert '    print_tuple(t);' in lines
    assert '    Dict ages = new_dict();' in lines
    assert '    dset(&ages, "bob", 30);' in lines
    assert '    dset(&ages, "amy", 25);' in lines
    assert '    printf("%d\\n", (int)(dget(&ages, "bob")));' in lines


def test_program_6_for_in_desugaring():
    result = transpile(read_example('program_6.em'))
    lines = result.c_source.splitlines()
    assert '    for (int _idx_v_9 = 0; _idx_v_9 < xs.size; _idx_v_9++) {' in lines
    assert '        int v = xs.data[_idx_v_9];' in lines
    assert '        char* k = ages.keys[_idx_k_11];' in lines
    assert '        printf("%s\\n", k);' in lines
    assert result.symbols.lookup('v') is VarType.INT
    assert result.symbols.lookup('k') is VarType.STRING


def test_program_6_string_loop_closes_extra_scope():
    main = transpile(read_example('program_6.em')).c_source.split('int main(void) {\n', 1)[1]
    tail = main.split('    {\n', 1)[1]
    assert tail == (
        '        const char* _str_c_13 = "ab";\n'
        "        for (int _idx_c_13 = 0; _str_c_13[_idx_c_13] != '\\0'; _idx_c_13++) {\n"
        '            int c = _str_c_13[_idx_c_13];\n'
        '            printf("%d\\n", (int)(c));\n'
        '        }\n'
        '    }\n'
        '    return 0;\n'
        '}\n'
    )


@needs_gcc
def test_program_6_runs(execute):
    out = execute(transpile(read_example('program_6.em')))
    assert out.splitlines() == [
        '[1, 2, 3, 4]', '4', '(1, 2)', '30',
        '1', '2', '3', '4',
        'bob', 'amy',
        '97', '98',
    ]
