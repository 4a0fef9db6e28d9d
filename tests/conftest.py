import pytest

MYSTRUCT_SRC = """\
package mypkg

import (
	"io"
	str "strings"
	_ "embed"
)

//go:generate goifaces type

// MyStruct type document
type MyStruct struct {
	item string
}

// Get func doc
func (m *MyStruct) Get() string {
	return m.item
}

// Set func doc
func (m *MyStruct) Set(item string) {
	m.item = item
}

// Copy copies to w.
func (m *MyStruct) Copy(w io.Writer) error {
	_, err := io.WriteString(w, str.ToUpper(m.item))
	return err
}

func (m *MyStruct) reset() {}

//go:generate goifaces type

// Reader reads.
type Reader interface {
	// Read reads into p.
	Read(p []byte) (n int, err error)
}
"""

SCENARIO_A_SRC = """\
package mypkg

// MyStruct type document
type MyStruct struct {
	item string
}

// Get func doc
func (m *MyStruct) Get() string {
	return m.item
}

// Set func doc
func (m *MyStruct) Set(item string) {
	m.item = item
}
"""

ORIGIN_SRC = """\
package originpkg

// Data is collated.
type Data struct{}

// Collator collates data.
type Collator struct{}

// Collate collates in.
func (c *Collator) Collate(in []*Data) error {
	return nil
}
"""

GENERIC_SRC = """\
package list

// List is a list.
type List[T any] struct {
	items []T
}

func (l *List[T]) Push(v T) {
	l.items = append(l.items, v)
}

func (l *List[T]) Len() int {
	return len(l.items)
}
"""


@pytest.fixture
def mystruct_src() -> str:
    return MYSTRUCT_SRC


@pytest.fixture
def scenario_a_src() -> str:
    return SCENARIO_A_SRC


@pytest.fixture
def origin_src() -> str:
    return ORIGIN_SRC


@pytest.fixture
def generic_src() -> str:
    return GENERIC_SRC


class StaticResolver:
    def __init__(self, path: str) -> None:
        self.path = path
        self.calls: list[str] = []

    def resolve(self, path: str) -> str:
        self.calls.append(path)
        return self.path


@pytest.fixture
def static_resolver():
    return StaticResolver
