import pytest

from classmatch.core.errors import ClassTypeInUseError, NotFoundError
from classmatch.db.schemas import ClassTypeCreate, ClassTypeUpdate


def test_create_class_type_splits_comma_separated_categories(services):
    class_type = services.class_types.create(
        ClassTypeCreate(name="Cantonese", category="language, cantonese ,")
    )

    assert class_type.category == ["language", "cantonese"]
    assert class_type.is_active is True
    assert services.class_types.get(class_type.id).name == "Cantonese"


def test_list_active_hides_deactivated_types(services, mandarin):
    archery = services.class_types.create(ClassTypeCreate(name="Archery"))
    services.class_types.update(ClassTypeUpdate(class_type_id=archery.id, is_active=False))

    active = services.class_types.list_active()
    every = services.class_types.list_all()

    assert [item.name for item in active] == ["Mandarin"]
    assert [item.name for item in every] == ["Archery", "Mandarin"]


def test_update_class_type_only_touches_given_fields(services, mandarin):
    updated = services.class_types.update(
        ClassTypeUpdate(class_type_id=mandarin.id, description="Beginner conversation")
    )

    assert updated.description == "Beginner conversation"
    assert updated.name == "Mandarin"
    assert updated.category == ["mandarin", "language"]


def test_update_missing_class_type(services):
    with pytest.raises(NotFoundError):
        services.class_types.update(ClassTypeUpdate(class_type_id="missing", name="X"))


def test_resolve_by_id_name_or_category(services, mandarin):
    assert services.class_types.resolve(mandarin.id).id == mandarin.id
    assert services.class_types.resolve("MANDARIN").id == mandarin.id
    assert services.class_types.resolve("language").id == mandarin.id
    with pytest.raises(NotFoundError):
        services.class_types.resolve("pottery")


def test_usage_count_and_delete_guard(services, mandarin):
    scheduled = services.roster.create_class(mandarin.id, "Monday", "6:00 PM")

    listed = services.class_types.list_all(with_usage=True)
    assert listed[0].usage_count == 1

    with pytest.raises(ClassTypeInUseError) as exc_info:
        services.class_types.delete(mandarin.id)
    assert exc_info.value.message == "Cannot delete class type. 1 classes are still using it."

    services.roster.delete_class(scheduled.id)
    services.class_types.delete(mandarin.id)
    with pytest.raises(NotFoundError):
        services.class_types.get(mandarin.id)


def test_category_lookup_ignores_case(services, mandarin):
    assert services.class_types.ids_for_category("Language") == [mandarin.id]
    assert services.class_types.ids_for_category(" MANDARIN ") == [mandarin.id]
