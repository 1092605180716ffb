"""
Tests for the search and mutation engine
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import ConflictError, NotFoundError, QueryFailureError, ValidationError
from app.models import Locale, Tag, Translation, TranslationKey, translation_key_tags
from app.schemas.translation import TranslationFilters
from app.services.translation_service import TranslationService


def _search(service, **params):
    return service.search(TranslationFilters.from_params(params))


def _key_names(page):
    return [key.key_name for key in page.data]


# ---------------------------------------------------------------------- search

def test_empty_filters_match_everything_ordered_by_id(service, seeded):
    page = _search(service)

    assert page.total == 4
    assert _key_names(page) == [
        "auth.login.title",
        "auth.logout.button",
        "home.welcome",
        "mobile.menu.open",
    ]
    assert page.current_page == 1
    assert page.last_page == 1


def test_pagination_bound(service):
    for i in range(25):
        service.create(f"bulk.key.{i}", {"en": f"Value {i}"})

    for page_number in (1, 2):
        page = _search(service, per_page=10, page=page_number)
        assert len(page.data) == 10
        assert page.total == 25

    last = _search(service, per_page=10, page=3)
    assert len(last.data) == 5
    assert last.total == 25
    assert last.last_page == 3

    beyond = _search(service, per_page=10, page=9)
    assert beyond.data == []
    assert beyond.total == 25


def test_pages_do_not_overlap(service):
    for i in range(7):
        service.create(f"page.key.{i}", {"en": "x"})

    first = _search(service, per_page=3, page=1)
    second = _search(service, per_page=3, page=2)
    ids = [key.id for key in first.data + second.data]
    assert ids == sorted(ids)
    assert len(set(ids)) == 6


def test_tag_filter_uses_or_semantics(service, seeded):
    page = _search(service, tags="auth,mobile")
    assert _key_names(page) == ["auth.login.title", "auth.logout.button", "mobile.menu.open"]
    assert page.total == 3


def test_tag_filter_single_tag(service, seeded):
    page = _search(service, tags="web")
    assert _key_names(page) == ["auth.login.title", "home.welcome"]


def test_key_with_several_matching_tags_appears_once(service, seeded):
    page = _search(service, tags="web,auth")
    assert _key_names(page).count("auth.login.title") == 1
    assert page.total == 3


def test_unknown_tag_matches_nothing(service, seeded):
    page = _search(service, tags="does-not-exist")
    assert page.data == []
    assert page.total == 0


def test_keyword_search_is_token_based(service, seeded):
    assert _key_names(_search(service, keyword="login")) == ["auth.login.title"]
    assert _key_names(_search(service, keyword="log")) == []
    assert _key_names(_search(service, keyword="log*")) == ["auth.login.title", "auth.logout.button"]


def test_keyword_search_limits_loaded_translations(service, seeded):
    page = _search(service, keyword="connexion")

    assert _key_names(page) == ["auth.login.title"]
    assert [t.value for t in page.data[0].translations] == ["Connexion"]


def test_key_search_matches_key_name_tokens(service, seeded):
    page = _search(service, key="auth")
    assert _key_names(page) == ["auth.login.title", "auth.logout.button"]

    page = _search(service, key="+auth +logout")
    assert _key_names(page) == ["auth.logout.button"]


def test_locale_filter_restricts_keys_and_translations(service, seeded):
    page = _search(service, locale="fr")

    assert _key_names(page) == ["auth.login.title"]
    translations = page.data[0].translations
    assert [(t.locale.code, t.value) for t in translations] == [("fr", "Connexion")]


def test_without_locale_all_translations_are_loaded(service, seeded):
    page = _search(service, key="login")
    codes = sorted(t.locale.code for t in page.data[0].translations)
    assert codes == ["en", "fr"]


def test_keyword_and_locale_share_one_join(service, seeded):
    page = _search(service, keyword="login", locale="en")
    assert _key_names(page) == ["auth.login.title"]
    assert [t.value for t in page.data[0].translations] == ["Login"]

    # keyword only exists in another locale
    assert _search(service, keyword="connexion", locale="en").total == 0


def test_tags_are_loaded_for_page_rows(service, seeded):
    page = _search(service, key="login")
    assert [tag.name for tag in page.data[0].tags] == ["auth", "web"]


def test_combined_filters(service, seeded):
    page = _search(service, tags="web", locale="de")
    assert _key_names(page) == ["home.welcome"]


# ------------------------------------------------------------------------ show

def test_find_key_with_relations(service, seeded):
    key = service.find_key_with_relations(seeded["welcome"].id)
    assert key.key_name == "home.welcome"
    assert sorted(t.locale.code for t in key.translations) == ["de", "en"]


def test_find_missing_key_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.find_key_with_relations(99999)


# ---------------------------------------------------------------------- create

def test_create_returns_key_with_relations(service, db_session):
    key = service.create("auth.login.title", {"en": "Login", "fr": "Connexion"}, ["auth", "web"])

    assert key.id is not None
    assert key.key_name == "auth.login.title"
    assert [tag.name for tag in key.tags] == ["auth", "web"]
    values = {t.locale.code: t.value for t in key.translations}
    assert values == {"en": "Login", "fr": "Connexion"}
    assert all(t.status.value == "approved" for t in key.translations)


def test_create_makes_locales_lazily_with_uppercase_name(service, db_session):
    service.create("a.b", {"pt-br": "Olá"})

    locale = db_session.query(Locale).filter(Locale.code == "pt-br").one()
    assert locale.name == "PT-BR"


def test_create_reuses_existing_locales_and_tags(service, db_session):
    service.create("first.key", {"en": "One"}, ["web"])
    service.create("second.key", {"en": "Two"}, ["web"])

    assert db_session.query(Locale).count() == 1
    assert db_session.query(Tag).count() == 1


def test_create_with_repeated_tag_names_links_each_once(service, db_session):
    key = service.create("dup.tags", {"en": "x"}, ["web", " web", "web", ""])

    assert [tag.name for tag in key.tags] == ["web"]
    assert db_session.query(Tag).count() == 1
    links = db_session.execute(
        select(func.count())
        .select_from(translation_key_tags)
        .where(translation_key_tags.c.translation_key_id == key.id)
    ).scalar()
    assert links == 1


def test_update_with_repeated_tag_names_links_each_once(service, seeded):
    key = service.update(seeded["menu"].id, {"tags": ["mobile", "web", "mobile"]})
    # ordered by tag id: web was seeded before mobile
    assert [tag.name for tag in key.tags] == ["web", "mobile"]


def test_get_or_create_is_idempotent(service, db_session):
    first = service.get_or_create_tag("web")
    second = service.get_or_create_tag("web")
    db_session.commit()

    assert first.id == second.id
    assert db_session.query(Tag).filter(Tag.name == "web").count() == 1


def test_create_duplicate_key_conflicts_without_side_effects(service, db_session):
    service.create("auth.login.title", {"en": "Login"}, ["auth"])

    with pytest.raises(ConflictError):
        service.create("auth.login.title", {"de": "Anmelden"}, ["brand-new"])

    assert db_session.query(TranslationKey).count() == 1
    assert db_session.query(Translation).count() == 1
    assert db_session.query(Locale).filter(Locale.code == "de").count() == 0
    assert db_session.query(Tag).filter(Tag.name == "brand-new").count() == 0


def test_create_without_values_is_rejected(service, db_session):
    with pytest.raises(ValidationError):
        service.create("empty.key", {})
    assert db_session.query(TranslationKey).count() == 0


def test_create_rolls_back_on_storage_failure(service, db_session, monkeypatch):
    def fail(self, key_id, values_by_locale):
        raise OperationalError("INSERT INTO translations", {}, Exception("connection lost"))

    monkeypatch.setattr(TranslationService, "_upsert_values", fail)

    with pytest.raises(QueryFailureError):
        service.create("broken.key", {"en": "x"}, ["web"])

    assert db_session.query(TranslationKey).count() == 0
    assert db_session.query(Tag).count() == 0


# ---------------------------------------------------------------------- update

def test_update_merges_values(service, seeded, db_session):
    key_id = seeded["logout"].id

    key = service.update(key_id, {"values": {"fr": "Déconnexion"}})
    assert {t.locale.code: t.value for t in key.translations} == {
        "en": "Logout",
        "fr": "Déconnexion",
    }

    key = service.update(key_id, {"values": {"fr": "Se déconnecter"}})
    assert {t.locale.code: t.value for t in key.translations} == {
        "en": "Logout",
        "fr": "Se déconnecter",
    }
    assert db_session.query(Translation).filter(Translation.translation_key_id == key_id).count() == 2


def test_update_without_tags_field_keeps_tags(service, seeded):
    key = service.update(seeded["login"].id, {"values": {"en": "Sign in"}})
    assert [tag.name for tag in key.tags] == ["auth", "web"]


def test_update_tags_resyncs_exactly(service, seeded):
    key = service.update(seeded["login"].id, {"tags": ["web", "mobile"]})
    assert sorted(tag.name for tag in key.tags) == ["mobile", "web"]


def test_update_empty_tags_clears(service, seeded):
    key = service.update(seeded["login"].id, {"tags": []})
    assert key.tags == []


def test_update_renames_key(service, seeded):
    key = service.update(seeded["menu"].id, {"key_name": "mobile.menu.show"})
    assert key.key_name == "mobile.menu.show"


def test_update_rename_to_own_name_is_allowed(service, seeded):
    key = service.update(seeded["menu"].id, {"key_name": "mobile.menu.open"})
    assert key.key_name == "mobile.menu.open"


def test_update_rename_to_taken_name_conflicts(service, seeded, db_session):
    with pytest.raises(ConflictError):
        service.update(seeded["menu"].id, {"key_name": "home.welcome", "tags": []})

    db_session.expire_all()
    menu = db_session.get(TranslationKey, seeded["menu"].id)
    assert menu.key_name == "mobile.menu.open"
    assert [tag.name for tag in menu.tags] == ["mobile"]


def test_update_rolls_back_all_writes_on_storage_failure(service, seeded, db_session, monkeypatch):
    key_id = seeded["login"].id

    def fail(self, key_id, values_by_locale):
        raise OperationalError("INSERT INTO translations", {}, Exception("connection lost"))

    monkeypatch.setattr(TranslationService, "_upsert_values", fail)

    with pytest.raises(QueryFailureError):
        service.update(key_id, {
            "key_name": "auth.login.renamed",
            "tags": ["brand-new"],
            "values": {"en": "Sign in"},
        })

    db_session.expire_all()
    key = db_session.get(TranslationKey, key_id)
    assert key.key_name == "auth.login.title"
    assert [tag.name for tag in key.tags] == ["auth", "web"]
    assert db_session.query(Tag).filter(Tag.name == "brand-new").count() == 0
    assert {t.locale.code: t.value for t in key.translations} == {"en": "Login", "fr": "Connexion"}


def test_update_missing_key_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.update(99999, {"key_name": "whatever"})


# ---------------------------------------------------------------------- delete

def test_delete_cascades_translations_and_tag_links(service, seeded, db_session):
    key_id = seeded["login"].id

    assert service.delete(key_id) is True

    db_session.expire_all()
    assert db_session.get(TranslationKey, key_id) is None
    assert db_session.query(Translation).filter(Translation.translation_key_id == key_id).count() == 0
    links = db_session.execute(
        select(func.count())
        .select_from(translation_key_tags)
        .where(translation_key_tags.c.translation_key_id == key_id)
    ).scalar()
    assert links == 0

    # shared rows survive
    assert db_session.query(Tag).filter(Tag.name.in_(["auth", "web"])).count() == 2
    assert db_session.query(Locale).filter(Locale.code == "fr").count() == 1
    assert _key_names(_search(service, tags="auth")) == ["auth.logout.button"]


def test_delete_missing_key_returns_false(service):
    assert service.delete(99999) is False
