# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the SQLAlchemy backend — sqlite integration and PostgreSQL compilation."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import JSON, ForeignKey, String, Text, func, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from pysieve.builder import SieveBuilder
from pysieve.data.descriptor import FilterLeaf, OrGroup, SieveQuery, SortDescriptor
from pysieve.data.relational.sqlalchemy import SqlAlchemyQueryEngine, SqlAlchemySchema
from pysieve.kernel.exceptions import FieldNotFoundException
from pysieve.processor import SieveProcessor

# ---------------------------------------------------------------------------
# Test entities (sqlite)
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Country(Base):
    __tablename__ = "sieve_countries"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))


class Author(Base):
    __tablename__ = "sieve_authors"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    age: Mapped[int]
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    profile: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    country_id: Mapped[int | None] = mapped_column(ForeignKey("sieve_countries.id"), nullable=True)
    country: Mapped[Country | None] = relationship()
    books: Mapped[list[Book]] = relationship(back_populates="author")


class Book(Base):
    __tablename__ = "sieve_books"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    pages: Mapped[int]
    author_id: Mapped[int] = mapped_column(ForeignKey("sieve_authors.id"))
    author: Mapped[Author] = relationship(back_populates="books")


# ---------------------------------------------------------------------------
# Test entities (PostgreSQL-only column types, compiled but never executed)
# ---------------------------------------------------------------------------


class PgBase(DeclarativeBase):
    pass


class Article(PgBase):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(primary_key=True)
    body: Mapped[str] = mapped_column(Text)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String))
    meta: Mapped[dict[str, Any]] = mapped_column(JSONB)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def ids(session: AsyncSession) -> dict[str, int]:
    """Seed five authors and return their ids by name."""
    france, germany = Country(name="France"), Country(name="Germany")
    authors = [
        Author(
            name="alice",
            age=25,
            email="alice@example.com",
            profile={"plan": "pro", "address": {"city": "Paris"}},
            country=france,
            books=[Book(title="Good Omens", pages=400), Book(title="Short", pages=50)],
        ),
        Author(
            name="bob",
            age=30,
            profile={"plan": "free"},
            country=germany,
            books=[Book(title="Bad Ideas", pages=200)],
        ),
        Author(name="charlie", age=35, email="charlie@example.org", profile={"plan": "pro"}, books=[Book(title="Rules", pages=120)]),
        Author(name="diana", age=22, email="diana@example.com", country=france),
        Author(name="eve", age=40),
    ]
    session.add_all(authors)
    await session.flush()
    return {a.name: a.id for a in authors}


@pytest.fixture
def processor() -> SieveProcessor:
    return (
        SieveBuilder()
        .with_schema(SqlAlchemySchema())
        .with_default_page_size(2)
        .with_max_page_size(3)
        .configure_entity(
            Author,
            lambda e: e.ignore("email", sorts=True, filter=False)
            .add_filter("no_email", lambda a: a.email.is_(None))
            .add_sort("name_length", lambda a: func.length(a.name)),
        )
        .build()
    )


async def _names(processor: SieveProcessor, session: AsyncSession, *filters, sorts=()) -> list[str]:
    query = SieveQuery(filters=list(filters), sorts=list(sorts))
    stmt = processor.apply_without_pagination(select(Author), query, Author, engine=SqlAlchemyQueryEngine(session))
    result = await session.execute(stmt)
    return [a.name for a in result.scalars().all()]


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class TestSqlAlchemySchema:
    def test_columns(self):
        schema = SqlAlchemySchema()
        name = schema.find_member(Author, "NAME")
        assert name.type is str
        assert not name.nullable
        assert schema.find_member(Author, "email").nullable
        assert schema.find_member(Author, "profile").is_json

    def test_relationships(self):
        schema = SqlAlchemySchema()
        books = schema.find_member(Author, "books")
        assert books.is_collection and books.is_relationship
        assert books.element_type is Book
        country = schema.find_member(Author, "country")
        assert country.type is Country
        assert not country.is_collection

    def test_array_columns(self):
        tags = SqlAlchemySchema().find_member(Article, "tags")
        assert tags.is_collection
        assert not tags.is_relationship
        assert tags.element_type is str

    def test_unmapped_types(self):
        assert SqlAlchemySchema().find_member(dict, "keys") is None


# ---------------------------------------------------------------------------
# Filtering against sqlite
# ---------------------------------------------------------------------------


class TestSqlAlchemyFilters:
    @pytest.mark.asyncio
    async def test_equality_values(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("name", "==", ["alice", "bob"]))
        assert set(names) == {"alice", "bob"}

    @pytest.mark.asyncio
    async def test_not_equals_values(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("id", "!=", [ids["alice"], ids["bob"]]))
        assert set(names) == {"charlie", "diana", "eve"}

    @pytest.mark.asyncio
    async def test_or_group(self, processor, session, ids):
        group = OrGroup([FilterLeaf("name", "==", ["alice"]), FilterLeaf("age", ">", [35])])
        assert set(await _names(processor, session, group)) == {"alice", "eve"}

    @pytest.mark.asyncio
    async def test_collection_path_is_existential(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("books.title", "@=", ["Good"]))
        assert names == ["alice"]

    @pytest.mark.asyncio
    async def test_collection_cardinality(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("books", "len==", [1]))
        assert set(names) == {"bob", "charlie"}

    @pytest.mark.asyncio
    async def test_string_length(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("name", "len<=", [3]))
        assert set(names) == {"bob", "eve"}

    @pytest.mark.asyncio
    async def test_scalar_relationship(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("country.name", "==", ["France"]))
        assert set(names) == {"alice", "diana"}

    @pytest.mark.asyncio
    async def test_not_equals_includes_nulls(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("email", "!=", ["alice@example.com"]))
        assert set(names) == {"bob", "charlie", "diana", "eve"}

    @pytest.mark.asyncio
    async def test_negated_contains_includes_nulls(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("email", "!@=", ["example.com"]))
        assert set(names) == {"bob", "charlie", "eve"}

    @pytest.mark.asyncio
    async def test_null_equality(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("email", "==", [None]))
        assert set(names) == {"bob", "eve"}

    @pytest.mark.asyncio
    async def test_json_paths(self, processor, session, ids):
        plan = FilterLeaf("profile.plan", "==", ["pro"], json=True)
        assert set(await _names(processor, session, plan)) == {"alice", "charlie"}
        city = FilterLeaf("profile.address.city", "==", ["Paris"], json=True)
        assert await _names(processor, session, city) == ["alice"]

    @pytest.mark.asyncio
    async def test_custom_filter(self, processor, session, ids):
        names = await _names(processor, session, FilterLeaf("no_email"))
        assert set(names) == {"bob", "eve"}

    @pytest.mark.asyncio
    async def test_like_wildcards_are_escaped(self, processor, session, ids):
        assert await _names(processor, session, FilterLeaf("name", "@=", ["%"])) == []


class TestSqlAlchemySorting:
    @pytest.mark.asyncio
    async def test_sort_and_tie_break(self, processor, session, ids):
        names = await _names(processor, session, sorts=[SortDescriptor("country.name"), SortDescriptor("age", "desc")])
        assert names == ["alice", "diana", "bob", "eve", "charlie"]

    @pytest.mark.asyncio
    async def test_custom_sort_key(self, processor, session, ids):
        names = await _names(processor, session, sorts=[SortDescriptor("name_length"), SortDescriptor("name")])
        assert names == ["bob", "eve", "alice", "diana", "charlie"]

    @pytest.mark.asyncio
    async def test_json_sort(self, processor, session, ids):
        names = await _names(processor, session, sorts=[SortDescriptor("profile.plan", json=True), SortDescriptor("name")])
        assert names[:3] == ["bob", "alice", "charlie"]

    @pytest.mark.asyncio
    async def test_restricted_sort_is_skipped(self, processor, session, ids):
        names = await _names(processor, session, sorts=[SortDescriptor("email"), SortDescriptor("age")])
        assert names == ["diana", "alice", "bob", "charlie", "eve"]

    def test_sort_through_collection_is_rejected(self, processor):
        with pytest.raises(FieldNotFoundException):
            processor.compile_sorts([SortDescriptor("books.title")], Author, strict=True)


class TestSqlAlchemyPaging:
    @pytest.mark.asyncio
    async def test_apply_async_counts_then_pages(self, processor, session, ids):
        query = SieveQuery(page=2, page_size=2, sorts=[SortDescriptor("age")])
        page = await processor.apply_async(select(Author), query, Author, engine=SqlAlchemyQueryEngine(session))
        assert page.total == 5
        assert [a.name for a in page.items] == ["bob", "charlie"]
        assert page.total_pages == 3
        assert page.has_next and page.has_previous

    @pytest.mark.asyncio
    async def test_page_size_is_clamped(self, processor, session, ids):
        query = SieveQuery(page_size=50, sorts=[SortDescriptor("age")])
        page = await processor.apply_async(select(Author), query, Author, engine=SqlAlchemyQueryEngine(session))
        assert page.size == 3
        assert len(page.items) == 3

    @pytest.mark.asyncio
    async def test_count(self, processor, session, ids):
        query = SieveQuery(filters=[FilterLeaf("age", ">=", [30])])
        assert await processor.count(select(Author), query, Author, engine=SqlAlchemyQueryEngine(session)) == 3

    @pytest.mark.asyncio
    async def test_engine_without_session(self, processor):
        with pytest.raises(RuntimeError):
            await SqlAlchemyQueryEngine().count(select(Author))


# ---------------------------------------------------------------------------
# PostgreSQL-specific translation
# ---------------------------------------------------------------------------


def _pg_sql(processor: SieveProcessor, *filters: FilterLeaf) -> str:
    stmt = processor.apply_filters(select(Article), SieveQuery(filters=list(filters)), Article, engine=SqlAlchemyQueryEngine())
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.fixture
def pg_processor() -> SieveProcessor:
    return (
        SieveBuilder()
        .with_schema(SqlAlchemySchema())
        .with_default_vector_language("simple")
        .configure_entity(Article, lambda e: e.as_vector("body", "english"))
        .build()
    )


class TestPostgresTranslation:
    def test_array_membership(self, pg_processor):
        assert "= ANY (articles.tags)" in _pg_sql(pg_processor, FilterLeaf("tags", "@=", ["python"]))

    def test_array_membership_ignore_case(self, pg_processor):
        sql = _pg_sql(pg_processor, FilterLeaf("tags", "@=*", ["Python"]))
        assert "unnest(articles.tags)" in sql
        assert "lower(" in sql
        assert "EXISTS" in sql

    def test_array_cardinality(self, pg_processor):
        assert "cardinality(articles.tags)" in _pg_sql(pg_processor, FilterLeaf("tags", "len>", [2]))

    def test_vector_match(self, pg_processor):
        sql = _pg_sql(pg_processor, FilterLeaf("body", "==", ["fast & search"], vector=True))
        assert "articles.body @@ to_tsquery(CAST(" in sql
        assert "AS REGCONFIG)" in sql

    def test_json_path_extraction(self, pg_processor):
        assert "->>" in _pg_sql(pg_processor, FilterLeaf("meta.lang", "==", ["en"], json=True))
        assert "#>>" in _pg_sql(pg_processor, FilterLeaf("meta.source.name", "==", ["x"], json=True))

    def test_case_folding(self, pg_processor):
        sql = _pg_sql(pg_processor, FilterLeaf("body", "_=*", ["Intro"]))
        assert "lower(articles.body) LIKE" in sql
