"""Shared test fixtures for DepSlice."""

from __future__ import annotations

from pathlib import Path

import pytest

from depslice.parser.index import SourceIndex

JAVA_SOURCES = {
    "com/acme/app/Foo.java": """package com.acme.app;

import com.acme.model.Widget;
import com.acme.util.Strings;
import java.util.List;

public class Foo {

    private int counter;

    public void bar() {
        this.helper();
    }

    public void helper() {
    }

    public void draw() {
        Widget w = new Widget();
        w.paint();
    }

    public String label(String text) {
        return Strings.upper(text);
    }

    public Runnable painter(Widget w) {
        return w::paint;
    }

    public void unused() {
        List<Widget> widgets = null;
        counter = 1;
    }
}
""",
    "com/acme/app/Report.java": """package com.acme.app;

import static com.acme.util.Strings.lower;

public class Report {

    public String title(String raw) {
        return lower(raw);
    }
}
""",
    "com/acme/app/Service.java": """package com.acme.app;

public class Service {

    private final Repository repository;

    public Service(Repository repository) {
        this.repository = repository;
    }

    public void handle() {
        repository.load().paint();
    }
}
""",
    "com/acme/app/Repository.java": """package com.acme.app;

import com.acme.model.Widget;

public class Repository {

    public Widget load() {
        return new Widget("stored");
    }

    public void save(Widget widget) {
    }
}
""",
    "com/acme/model/Widget.java": """package com.acme.model;

public class Widget {

    public Widget() {
    }

    public Widget(String name) {
    }

    public void paint() {
    }

    public void resize(int width) {
    }
}
""",
    "com/acme/util/Strings.java": """package com.acme.util;

public final class Strings {

    public static final String EMPTY = "";

    private Strings() {
    }

    public static String upper(String text) {
        return text == null ? EMPTY : text.toUpperCase();
    }

    public static String lower(String text) {
        return text.toLowerCase();
    }
}
""",
    "com/acme/web/Controller.java": """package com.acme.web;

import javax.validation.Valid;

public class Controller {

    public void submit(@Valid A a, @Valid B b) {
    }
}
""",
    "com/acme/web/A.java": """package com.acme.web;

import javax.validation.constraints.NotNull;

public class A {

    @NotNull
    private String name;

    private int size;
}
""",
    "com/acme/web/B.java": """package com.acme.web;

public class B {

    private long id;
}
""",
    "com/acme/multi/C.java": """package com.acme.multi;

public class C {

    public void x() {
    }

    public void y() {
    }

    public void z() {
    }
}
""",
    "com/acme/cycle/Ping.java": """package com.acme.cycle;

public class Ping {

    public void ping() {
        new Pong().pong();
    }

    public void a() {
        b();
    }

    public void b() {
        a();
    }
}
""",
    "com/acme/cycle/Pong.java": """package com.acme.cycle;

public class Pong {

    public void pong() {
        new Ping().ping();
    }
}
""",
    "com/acme/shapes/Shape.java": """package com.acme.shapes;

public interface Shape {

    double area();

    String describe();
}
""",
    "com/acme/shapes/Circle.java": """package com.acme.shapes;

public class Circle implements Shape {

    private final double radius;

    public Circle(double radius) {
        this.radius = radius;
    }

    @Override
    public double area() {
        return Math.PI * radius * radius;
    }

    @Override
    public String describe() {
        return "circle";
    }
}
""",
    "com/acme/shapes/Base.java": """package com.acme.shapes;

public class Base {

    protected final int corners;

    public Base() {
        this(0);
    }

    public Base(int corners) {
        this.corners = corners;
    }
}
""",
    "com/acme/shapes/Square.java": """package com.acme.shapes;

public class Square extends Base {

    private final double side;

    public Square() {
        this(1.0);
    }

    public Square(double side) {
        super(4);
        this.side = side;
    }
}
""",
}

POM_XML = """<project>
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.acme</groupId>
  <artifactId>acme</artifactId>
  <version>1.0</version>
</project>
"""


def make_index(sources: dict[str, str] | None = None) -> SourceIndex:
    """Index in-memory Java sources (defaults to the shared sample project)."""
    return SourceIndex.from_sources(sources if sources is not None else JAVA_SOURCES)


@pytest.fixture
def java_sources() -> dict[str, str]:
    return dict(JAVA_SOURCES)


@pytest.fixture
def index() -> SourceIndex:
    return make_index()


@pytest.fixture
def java_project(tmp_path: Path) -> Path:
    """Create a temporary Maven project with sample Java sources."""
    (tmp_path / "pom.xml").write_text(POM_XML)
    source_root = tmp_path / "src" / "main" / "java"
    for rel_path, source in JAVA_SOURCES.items():
        target = source_root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source)
    return tmp_path


@pytest.fixture
def sample_java_source() -> str:
    """Sample Java source code for parser testing."""
    return """package com.acme.sample;

import java.io.IOException;
import java.util.*;
import static java.util.Objects.requireNonNull;

@Entity
public class Sample<T> extends Base implements Comparable<Sample<T>>, Runnable {

    public static final int LIMIT = 10;

    private String first, second;

    public Sample() {
        this("x");
    }

    public Sample(String first) {
        super();
        this.first = requireNonNull(first);
    }

    @Override
    public int compareTo(Sample<T> other) {
        return first.compareTo(other.first);
    }

    @Override
    public void run() {
        for (String item : List.of(first, second)) {
            System.out.println(item);
        }
    }

    public List<T> load(@Nullable String path, Object... extra) throws IOException {
        try (Reader reader = open(path)) {
            return new ArrayList<>();
        } catch (IllegalStateException | IllegalArgumentException e) {
            throw new IOException(e);
        }
    }

    private Reader open(String path) {
        return null;
    }
}
"""
