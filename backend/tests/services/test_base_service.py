from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from picadero.core.enums import RoleName
from picadero.core.exceptions import ServiceException
from picadero.models import Plan
from picadero.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics
from picadero.services.base import BaseService


class PlanService(BaseService):
    @BaseService.measure_operation("add_plan")
    def add(self, nombre: str) -> Plan:
        with self.transaction():
            plan = Plan(nombre=nombre, tipo=RoleName.ESCUELITA.value, clases_mes=4, precio=10000)
            self.db.add(plan)
        return plan

    @BaseService.measure_operation("explode")
    def explode(self) -> None:
        raise RuntimeError("boom")


class TestTransaction:
    def test_commits_on_success(self, db, clock):
        PlanService(db, clock).add("Basico")
        db.expunge_all()

        assert db.query(Plan).filter_by(nombre="Basico").count() == 1

    def test_database_errors_become_service_exceptions(self, db, clock):
        service = PlanService(db, clock)

        with pytest.raises(ServiceException):
            with service.transaction():
                raise OperationalError("SELECT 1", {}, Exception("connection reset"))

    def test_other_errors_roll_back_and_propagate(self, db, clock):
        service = PlanService(db, clock)

        with pytest.raises(ValueError):
            with service.transaction():
                db.add(Plan(nombre="Perdido", tipo="escuelita", clases_mes=4, precio=1))
                db.flush()
                raise ValueError("bad input")

        assert db.query(Plan).filter_by(nombre="Perdido").count() == 0


class TestMeasureOperation:
    def test_records_in_process_and_prometheus_metrics(self, db, clock):
        service = PlanService(db, clock)
        service.add("Intermedio")
        with pytest.raises(RuntimeError):
            service.explode()

        metrics = service.get_metrics()
        assert metrics["add_plan"]["success_rate"] == 1.0
        assert metrics["explode"]["success_rate"] == 0.0

        errors = REGISTRY.get_sample_value(
            "picadero_errors_total",
            {"service": "PlanService", "operation": "explode", "error_type": "RuntimeError"},
        )
        assert errors == 1.0
        assert b"picadero_errors_total" in prometheus_metrics.get_metrics()

    def test_clock_defaults_to_the_academy_clock(self, db):
        assert isinstance(PlanService(db).clock.today(), date)
