import uuid
from datetime import datetime, timedelta, timezone

from ordering.db import models
from ordering.services.activity_feed_service import DELETED_USER, ActivityFeedService
from ordering.services.permission_service import PermissionService


def _role(db_session, name):
    return db_session.query(models.Role).filter(models.Role.name == name).one()


def _granted(role):
    return {rp.permission.name for rp in role.role_permissions}


def test_sync_creates_permissions_and_system_roles(db_session):
    service = PermissionService(db_session)
    result = service.sync_permissions()

    total = len(service.generate_permissions())
    assert result == {"created": total, "updated": 0, "deleted": 0, "total": total}
    assert db_session.query(models.Permission).count() == total

    roles = {role.name: role for role in db_session.query(models.Role).all()}
    assert set(roles) == {"admin", "manager", "restaurant", "viewer"}
    assert all(role.is_system for role in roles.values())
    assert len(_granted(roles["admin"])) == total
    assert all(name.endswith(".view") for name in _granted(roles["viewer"]))
    assert "users.edit" not in _granted(roles["manager"])
    assert _granted(roles["restaurant"]) >= {"orders.view", "orders.edit"}


def test_second_sync_updates_and_keeps_custom_grants(db_session):
    service = PermissionService(db_session)
    service.sync_permissions()
    viewer = _role(db_session, "viewer")
    viewer.role_permissions.clear()
    db_session.commit()

    result = service.sync_permissions()
    assert result["created"] == 0
    assert result["updated"] == result["total"]
    # existing non-admin roles are left as edited
    assert _granted(_role(db_session, "viewer")) == set()


def test_remove_obsolete_keeps_protected(db_session):
    service = PermissionService(db_session)
    service.sync_permissions()
    db_session.add_all([
        models.Permission(name="reports.view", display_name="Ver Reportes", group="reports"),
        models.Permission(name="profile.view", display_name="Ver Perfil", group="profile"),
    ])
    db_session.commit()

    result = service.sync_permissions(remove_obsolete=True)
    assert result["deleted"] == 1
    names = {p.name for p in db_session.query(models.Permission).all()}
    assert "reports.view" not in names
    assert "profile.view" in names


def test_activity_feed_merges_sources(db_session):
    user = models.User(email="ops@example.com", display_name="Ops Team")
    db_session.add(user)
    db_session.commit()
    base = datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)
    activity = models.UserActivity(
        user_id=user.id, activity_type="login", description="Inicio de sesión", created_at=base
    )
    audit = models.AuditLog(
        actor_user_id=user.id,
        action_type="order_status_update",
        status="success",
        description="Orden ORD-20261019-0001 a preparing",
        created_at=base + timedelta(minutes=5),
    )
    db_session.add_all([
        activity,
        audit,
        models.UserActivity(user_id=user.id, activity_type="heartbeat", created_at=base + timedelta(minutes=1)),
        models.UserActivity(user_id=user.id, activity_type="page_view", created_at=base + timedelta(minutes=2)),
    ])
    db_session.commit()

    feed = ActivityFeedService(db_session).get_feed()
    assert feed["total"] == 2
    assert feed["last_page"] == 1
    assert [row["id"] for row in feed["data"]] == [f"al_{audit.id}", f"ua_{activity.id}"]
    assert feed["data"][0]["user"]["name"] == "Ops Team"


def test_activity_feed_filters_and_paginates(db_session):
    base = datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)
    db_session.add_all([
        models.UserActivity(activity_type="login", description=f"evento {i}", created_at=base + timedelta(minutes=i))
        for i in range(5)
    ])
    db_session.commit()
    service = ActivityFeedService(db_session)

    page = service.get_feed(page=2, per_page=2)
    assert page["total"] == 5
    assert page["last_page"] == 3
    assert [row["description"] for row in page["data"]] == ["evento 2", "evento 1"]

    assert service.get_feed({"search": "EVENTO 4"})["total"] == 1
    assert service.get_feed({"event_type": "logout,export"})["total"] == 0


def test_activity_feed_marks_missing_users(db_session):
    db_session.add(models.UserActivity(user_id=uuid.uuid4(), activity_type="login", description="Huérfano"))
    db_session.commit()
    (row,) = ActivityFeedService(db_session).get_feed()["data"]
    assert row["user"] == DELETED_USER
