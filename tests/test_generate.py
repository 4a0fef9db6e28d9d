import pytest

from goifaces.errors import ImportResolutionError, NoSourceFileError, NotFoundError, ParseError
from goifaces.generate import Destination, GenerateOptions, Generator, Source

SCENARIO_A_OUT = """\
// DO NOT EDIT

package mypkg

// PreMyStructPost type document
type PreMyStructPost interface {
	// Get func doc
	Get() string
	// Set func doc
	Set(item string)
}
"""


def _scenario_a(src: str, current=None):
    gen = Generator(GenerateOptions(comment="DO NOT EDIT", pre="Pre", post="Post", match_type="MyStruct"))
    (r,) = gen.types([Source("mypkg/mystruct.go", src=src)], [Destination("mypkg/ifaces.go", current=current)])
    return r


def test_type_mode_prefix_suffix(scenario_a_src: str):
    r = _scenario_a(scenario_a_src)
    assert r.ok
    assert r.output == SCENARIO_A_OUT


def test_rerun_with_previous_output_is_identical(scenario_a_src: str):
    first = _scenario_a(scenario_a_src)
    second = _scenario_a(scenario_a_src, current=first.output)
    assert second.output == first.output
    assert second.output.count("Get() string") == 1


def test_type_mode_by_directive_line(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", iface="Thing"))
    (r,) = gen.types([Source("mypkg/mystruct.go", line=9, src=mystruct_src)], [Destination("out.go")])
    assert r.output.startswith(
        "package mypkg\n\nimport (\n\t\"io\"\n)\n\n// Thing type document\ntype Thing interface {\n"
    )
    assert "\tCopy(w io.Writer) error\n" in r.output
    assert "reset" not in r.output


def test_type_mode_interface_candidate(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", match_type="Reader", post="Iface"))
    (r,) = gen.types([Source("mypkg/mystruct.go", src=mystruct_src)], [Destination("out.go")])
    assert "type ReaderIface interface {\n\t// Read reads into p.\n\tRead(p []byte) (n int, err error)\n}\n" in r.output


def test_prefix_imports_follow_emitted_signatures(mystruct_src: str, static_resolver):
    resolver = static_resolver("example.com/mypkg")
    gen = Generator(GenerateOptions(comment="", pkg="other", match_type="MyStruct"), resolver=resolver)
    (r,) = gen.types([Source("mypkg/mystruct.go", src=mystruct_src)], [Destination("other/ifaces.go")])
    assert r.output.startswith('package other\n\nimport (\n\t"io"\n)\n')
    assert "strings" not in r.output
    assert "embed" not in r.output
    # nothing local to mypkg is referenced
    assert resolver.calls == []


def test_requalify_into_other_package(origin_src: str, static_resolver):
    resolver = static_resolver("example.com/originpkg")
    gen = Generator(GenerateOptions(comment="", match_type="Collator"), resolver=resolver)
    (r,) = gen.types(
        [Source("originpkg/collate.go", src=origin_src)],
        [Destination("mypkg/ifaces.go", package="mypkg")],
    )
    assert "\tCollate(in []*originpkg.Data) error\n" in r.output
    assert 'import (\n\t"example.com/originpkg"\n)\n' in r.output
    assert resolver.calls == ["originpkg/collate.go"]


def test_own_import_gets_alias_when_path_differs(origin_src: str, static_resolver):
    gen = Generator(GenerateOptions(comment="", match_type="Collator"), resolver=static_resolver("example.com/origin-go"))
    (r,) = gen.types([Source("originpkg/collate.go", src=origin_src)], [Destination("x.go", package="mypkg")])
    assert '\toriginpkg "example.com/origin-go"\n' in r.output


def test_unresolvable_own_import_is_omitted(origin_src: str):
    class Failing:
        def resolve(self, path: str) -> str:
            raise ImportResolutionError("no go.mod")

    gen = Generator(GenerateOptions(comment="", match_type="Collator"), resolver=Failing())
    (r,) = gen.types([Source("originpkg/collate.go", src=origin_src)], [Destination("x.go", package="mypkg")])
    assert r.ok
    assert "import" not in r.output
    assert "originpkg.Data" in r.output


def test_rerun_keeps_single_own_import(origin_src: str, static_resolver):
    gen = Generator(GenerateOptions(comment="", match_type="Collator"), resolver=static_resolver("example.com/originpkg"))
    srcs = [Source("originpkg/collate.go", src=origin_src)]
    (first,) = gen.types(srcs, [Destination("x.go", package="mypkg")])
    (second,) = gen.types(srcs, [Destination("x.go", package="mypkg", current=first.output)])
    assert second.output == first.output


def test_generic_methods_are_skipped(generic_src: str):
    gen = Generator(GenerateOptions(comment="", match_type="List"))
    (r,) = gen.types([Source("list/list.go", src=generic_src)], [Destination("out.go")])
    assert "\tLen() int\n" in r.output
    assert "Push" not in r.output


def test_generic_param_inside_func_type_is_skipped():
    src = (
        "package list\n\n"
        "type List[T any] struct{}\n\n"
        "func (l *List[T]) Len() int { return 0 }\n\n"
        "func (l *List[T]) Each(fn func(T) bool) {}\n"
    )
    gen = Generator(GenerateOptions(comment="", match_type="List"))
    (r,) = gen.types([Source("list/list.go", src=src)], [Destination("out.go")])
    assert "\tLen() int\n" in r.output
    assert "Each" not in r.output


RUNNER_SRC = """\
package originpkg

import "context"

type Data struct{}

type Runner struct{}

func (r *Runner) Apply(fn func(*Data) error) error { return nil }

func (r *Runner) Run(fn func(ctx context.Context) error) error { return nil }
"""


def test_func_typed_params_are_requalified_and_imported(static_resolver):
    resolver = static_resolver("example.com/originpkg")
    gen = Generator(GenerateOptions(comment="", match_type="Runner"), resolver=resolver)
    (r,) = gen.types([Source("originpkg/runner.go", src=RUNNER_SRC)], [Destination("mypkg/ifaces.go", package="mypkg")])
    assert r.ok
    assert "\tApply(fn func(*originpkg.Data) error) error\n" in r.output
    assert "\tRun(fn func(ctx context.Context) error) error\n" in r.output
    assert 'import (\n\t"context"\n\n\t"example.com/originpkg"\n)\n' in r.output
    assert resolver.calls == ["originpkg/runner.go"]


def test_struct_mode_all_structs(scenario_a_src: str):
    gen = Generator(GenerateOptions(comment="", struct=True, pkg="mypkg"))
    (r,) = gen.types(
        [Source("mypkg/a.go", src=scenario_a_src)],
        [Destination("out.go")],
    )
    assert "type MyStruct interface {" in r.output


def test_recv_mode_by_pattern(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", iface="Getter", match_func="Get"))
    (r,) = gen.recvs([Source("mypkg/mystruct.go", src=mystruct_src)], [Destination("out.go")])
    assert r.output == (
        "package mypkg\n\n// Getter type document\ntype Getter interface {\n\t// Get func doc\n\tGet() string\n}\n"
    )


def test_recv_mode_type_filter(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", match_func="*", match_type="Other*"))
    (r,) = gen.recvs([Source("mypkg/mystruct.go", src=mystruct_src)], [Destination("out.go")])
    assert isinstance(r.error, NotFoundError)


def test_recv_mode_by_directive_line(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", no_tdoc=True, no_fdoc=True))
    (r,) = gen.recvs([Source("mypkg/mystruct.go", line=20, src=mystruct_src)], [Destination("out.go")])
    assert r.output == "package mypkg\n\ntype MyStruct interface {\n\tSet(item string)\n}\n"


def test_not_found_is_per_target(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", match_type="Missing"))
    results = gen.types([Source("mypkg/mystruct.go", src=mystruct_src)], [Destination("a.go"), Destination("b.go")])
    assert [r.file for r in results] == ["a.go", "b.go"]
    assert all(isinstance(r.error, NotFoundError) for r in results)
    assert "Missing" in str(results[0].error)


def test_broken_target_does_not_stop_siblings(mystruct_src: str):
    gen = Generator(GenerateOptions(comment="", match_type="MyStruct"))
    good, bad = gen.types(
        [Source("mypkg/mystruct.go", src=mystruct_src)],
        [Destination("good.go"), Destination("bad.go", current="this is not go {")],
    )
    assert good.ok and "type MyStruct interface {" in good.output
    assert not bad.ok and isinstance(bad.error, ParseError)


def test_no_parsable_sources():
    gen = Generator(GenerateOptions(match_type="X"))
    with pytest.raises(NoSourceFileError):
        gen.types([Source("bad.go", src="nope {")], [Destination("out.go")])
