"""
tests.test_projections

Projections of a resolved view: query filters, image buckets and display profiles.
"""

from __future__ import annotations

import pytest

from tests.conftest import EQUIPMENT, GENERATORS, TRACTORS, FakeAuthority
from tradeflow_authz.auth.models import Identity
from tradeflow_authz.authz.filters import category_query_params, filter_by_category
from tradeflow_authz.authz.media import (
    ImageCategory,
    allowed_image_categories,
    filter_images,
    image_categories_for_name,
)
from tradeflow_authz.authz.models import (
    AuthorizationView,
    CapabilitySet,
    Category,
    EffectiveScope,
    Role,
)
from tradeflow_authz.authz.profile import ProfileResolver, initials_for
from tradeflow_authz.authz.scope import compute_scope
from tradeflow_authz.policy_clients.schemas import ProfileRow

IDENTITY = Identity(subject="user-dana", email="dana@example.com")
UNIVERSE = [EQUIPMENT, GENERATORS, TRACTORS]

ITEMS = [
    {"id": "i1", "name": "C15 genset", "category_id": GENERATORS.id},
    {"id": "i2", "name": "MF 290", "category_id": TRACTORS.id},
    {"id": "i3", "name": "Loose part", "category_id": None},
]


def _view(scope: EffectiveScope, role: Role = Role.sales_staff) -> AuthorizationView:
    return AuthorizationView(
        identity=IDENTITY, role=role, capabilities=CapabilitySet.empty(), scope=scope
    )


def test_unrestricted_view_adds_no_query_clause() -> None:
    view = _view(compute_scope(role=Role.sales_staff, universe=UNIVERSE, grants=()))

    assert category_query_params(view) == {}
    assert filter_by_category(ITEMS, view) == ITEMS


def test_restricted_view_builds_in_clause() -> None:
    scope = compute_scope(
        role=Role.sales_staff, universe=UNIVERSE, grants={TRACTORS.id, GENERATORS.id}
    )
    view = _view(scope)

    assert category_query_params(view, column="product_category_id") == {
        "product_category_id": 'in.("cat-gen","cat-trc")'
    }
    assert [i["id"] for i in filter_by_category(ITEMS, view)] == ["i1", "i2"]


def test_locked_down_view_matches_nothing() -> None:
    view = _view(EffectiveScope.locked_down())

    assert category_query_params(view) == {"category_id": "in.()"}
    assert filter_by_category(ITEMS, view) == []


def test_in_clause_quotes_ids_with_reserved_characters() -> None:
    odd = [Category(id="a,b", name="Comma"), Category(id='say "hi")', name="Quote")]
    scope = compute_scope(role=Role.sales_staff, universe=odd, grants={c.id for c in odd})

    assert category_query_params(_view(scope)) == {
        "category_id": r'in.("a,b","say \"hi\")")'
    }


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Diesel Generators", {ImageCategory.generator}),
        ("مولدات كهربائية", {ImageCategory.generator}),
        ("Agricultural Tractors", {ImageCategory.tractor}),
        ("معدات ثقيلة", {ImageCategory.equipment}),
        ("Spare Parts", set()),
    ],
)
def test_image_bucket_for_category_name(name: str, expected: set[ImageCategory]) -> None:
    assert image_categories_for_name(name) == expected


def test_image_buckets_follow_category_scope() -> None:
    restricted = _view(compute_scope(role=Role.sales_staff, universe=UNIVERSE, grants={GENERATORS.id}))
    open_view = _view(compute_scope(role=Role.sales_staff, universe=UNIVERSE, grants=()))
    images = [
        {"id": "img1", "category": "generator"},
        {"id": "img2", "category": "tractor"},
    ]

    assert allowed_image_categories(restricted) == {ImageCategory.generator}
    assert [i["id"] for i in filter_images(images, restricted)] == ["img1"]
    assert allowed_image_categories(open_view) == set(ImageCategory)
    assert filter_images(images, open_view) == images


def test_degraded_scope_hides_all_images() -> None:
    view = _view(EffectiveScope.locked_down())

    assert allowed_image_categories(view) == frozenset()
    assert filter_images([{"id": "img1", "category": "generator"}], view) == []


def test_admin_view_with_restricted_looking_grants_is_not_filtered() -> None:
    scope = compute_scope(role=Role.admin, universe=UNIVERSE, grants={GENERATORS.id})
    view = _view(scope, role=Role.admin)

    assert category_query_params(view) == {}
    assert view.can_access_category(TRACTORS.id)
    assert view.as_dict()["allowed_categories"] == [
        {"id": c.id, "name": c.name} for c in UNIVERSE
    ]


@pytest.mark.parametrize(
    ("name", "initials"),
    [("Sara al Harbi", "SA"), ("omar", "O"), ("Khalid Bin Saeed", "KB")],
)
def test_initials(name: str, initials: str) -> None:
    assert initials_for(name) == initials


@pytest.mark.asyncio
async def test_profile_resolution(authority: FakeAuthority) -> None:
    authority.profiles[IDENTITY.subject] = ProfileRow(full_name="Dana Haddad", email="dana@example.com")
    profile = await ProfileResolver(authority=authority).resolve(IDENTITY)

    assert profile is not None
    assert profile.full_name == "Dana Haddad"
    assert profile.initials == "DH"


@pytest.mark.asyncio
async def test_profile_without_name_uses_default(authority: FakeAuthority) -> None:
    authority.profiles[IDENTITY.subject] = ProfileRow(full_name=None, email=None)
    profile = await ProfileResolver(authority=authority).resolve(IDENTITY)

    assert profile is not None
    assert profile.full_name == "User"
    assert profile.initials == "U"


@pytest.mark.asyncio
async def test_missing_profile_row_is_none(authority: FakeAuthority) -> None:
    assert await ProfileResolver(authority=authority).resolve(IDENTITY) is None


@pytest.mark.asyncio
async def test_profile_fetch_failure_falls_back_to_identity_email(authority: FakeAuthority) -> None:
    authority.fail.add("fetch_profile")
    profile = await ProfileResolver(authority=authority).resolve(IDENTITY)

    assert profile is not None
    assert (profile.full_name, profile.email, profile.initials) == ("User", "dana@example.com", "U")


def test_allowed_categories_keep_universe_order() -> None:
    universe = [Category(id="b", name="Alpha"), Category(id="a", name="Beta")]
    scope = compute_scope(role=Role.accountant, universe=universe, grants={"a", "b"})

    assert [c.name for c in scope.allowed_categories] == ["Alpha", "Beta"]
