from ember.compiler import transpile
from conftest import read_example, needs_gcc


def test_program_3_if_chain_and_range():
    result = transpile(read_example('program_3.em'))
    assert result.ok
    assert not result.warnings
    body = result.c_source.split('int main(void) {\n', 1)[1]
    assert body == (
        '    int n = 3;\n'
        '    if (n > 2) {\n'
        '        printf("%s\\n", "big");\n'
        '    } else if (n == 2) {\n'
        '        printf("%s\\n", "two");\n'
        '    } else {\n'
        '        printf("%s\\n", "small");\n'
        '    }\n'
        '    for (int i = 1; i <= 5; i++) {\n'
        '        printf("%d\\n", (int)(i));\n'
        '    }\n'
        '    return 0;\n'
        '}\n'
    )


@needs_gcc
def test_program_3_runs(execute):
    out = execute(transpile(read_example('program_3.em')))
    assert out.split() == ['big', '1', '2', '3', '4', '5']
