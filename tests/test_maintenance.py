from datetime import date, datetime, time, timedelta

from restoflow.maintenance import TASK_HANDLERS, archive_expired_menu_plans, update_expired_reservations
from restoflow.models import MenuPlan, RestaurantTable, TableReservation


def _plan(db, owner, name, end, *, active=True, default=False):
    plan = MenuPlan(
        restaurant_id=owner.restaurant.id,
        plan_name=name,
        plan_type="weekly",
        start_date=end - timedelta(days=6),
        end_date=end,
        is_active=active,
        is_default=default,
    )
    db.add(plan)
    db.commit()
    return plan


def _table(db, owner, number, status="available"):
    table = RestaurantTable(
        user_id=owner.id, table_number=number, table_name=f"Table {number}", seats=4, status=status
    )
    db.add(table)
    db.commit()
    return table


def _reservation(db, owner, table, start, *, status="confirmed", minutes=120):
    res = TableReservation(
        table_id=table.id,
        user_id=owner.id,
        customer_name="Ada",
        customer_phone="0711111111",
        party_size=2,
        reservation_date=start.date(),
        reservation_time=start.time(),
        duration_minutes=minutes,
        status=status,
    )
    db.add(res)
    db.commit()
    return res


def test_archive_deactivates_expired_non_default_plans(db, make_owner):
    owner = make_owner()
    today = date(2025, 6, 10)
    expired = _plan(db, owner, "Spring", date(2025, 6, 9))
    default = _plan(db, owner, "House menu", date(2025, 6, 1), default=True)
    current = _plan(db, owner, "Summer", date(2025, 6, 10))
    already = _plan(db, owner, "Winter", date(2025, 1, 1), active=False)

    summary = archive_expired_menu_plans(db, today=today)

    assert (summary.archived, summary.skipped_default, summary.total_expired) == (1, 1, 2)
    db.expire_all()
    assert db.get(MenuPlan, expired.menu_plan_id).is_active is False
    assert db.get(MenuPlan, default.menu_plan_id).is_active is True
    assert db.get(MenuPlan, current.menu_plan_id).is_active is True
    assert db.get(MenuPlan, already.menu_plan_id).is_active is False


def test_archive_with_nothing_expired(db, make_owner):
    owner = make_owner()
    _plan(db, owner, "Future", date(2030, 1, 1))
    summary = archive_expired_menu_plans(db, today=date(2025, 6, 10))
    assert summary.archived == 0
    assert summary.total_expired == 0


def test_expired_reservation_completes_and_frees_table(db, make_owner):
    owner = make_owner()
    now = datetime(2025, 6, 10, 20, 0)
    table = _table(db, owner, "T1", status="occupied")
    res = _reservation(db, owner, table, now - timedelta(hours=3), status="seated")

    summary = update_expired_reservations(db, now=now)

    assert summary.completed == 1
    assert summary.tables_released == ["Table T1"]
    db.expire_all()
    assert db.get(TableReservation, res.id).status == "completed"
    assert db.get(RestaurantTable, table.id).status == "available"


def test_running_reservation_is_untouched(db, make_owner):
    owner = make_owner()
    now = datetime(2025, 6, 10, 20, 0)
    table = _table(db, owner, "T2", status="reserved")
    res = _reservation(db, owner, table, now - timedelta(minutes=30))

    summary = update_expired_reservations(db, now=now)

    assert summary.completed == 0
    db.expire_all()
    assert db.get(TableReservation, res.id).status == "confirmed"
    assert db.get(RestaurantTable, table.id).status == "reserved"


def test_table_in_maintenance_is_not_released(db, make_owner):
    owner = make_owner()
    now = datetime(2025, 6, 10, 20, 0)
    table = _table(db, owner, "T3", status="maintenance")
    _reservation(db, owner, table, now - timedelta(hours=4), status="pending")

    summary = update_expired_reservations(db, now=now)

    assert summary.completed == 1
    assert summary.tables_released == []
    db.expire_all()
    assert db.get(RestaurantTable, table.id).status == "maintenance"


def test_cancelled_reservations_are_ignored(db, make_owner):
    owner = make_owner()
    now = datetime(2025, 6, 10, 20, 0)
    table = _table(db, owner, "T4", status="reserved")
    res = _reservation(db, owner, table, now - timedelta(hours=5), status="cancelled")
    assert update_expired_reservations(db, now=now).completed == 0
    db.expire_all()
    assert db.get(TableReservation, res.id).status == "cancelled"


def test_default_duration_applies_when_missing(db, make_owner):
    owner = make_owner()
    table = _table(db, owner, "T5", status="reserved")
    res = _reservation(db, owner, table, datetime(2025, 6, 10, 18, 0), minutes=None)
    assert res.ends_at == datetime.combine(date(2025, 6, 10), time(20, 0))


def test_task_handlers_open_their_own_session(db, make_owner):
    owner = make_owner()
    _plan(db, owner, "Old", date.today() - timedelta(days=2))
    summary = TASK_HANDLERS["menu-plans:archive-expired"]()
    assert summary.archived == 1
