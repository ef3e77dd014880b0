# backend/alembic/versions/001_academy_schema.py
"""Academy schema - users, horses, teachers, plans, lessons and billing

Revision ID: 001_academy_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates every table in its final form. Roles and states are VARCHAR columns
guarded by CHECK constraints rather than native ENUM types.
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_academy_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROGRAMADA_ONLY = sa.text("estado = 'programada'")


def _timestamps(with_updated: bool = False):
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True)]
    if with_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    """Create the academy schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("nombre", sa.String(100), nullable=False),
        sa.Column("apellido", sa.String(100), nullable=False),
        sa.Column("telefono", sa.String(30), nullable=True),
        sa.Column("rol", sa.String(30), nullable=False),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "rol IN ('escuelita', 'pension_completa', 'media_pension', 'profesor', 'admin')",
            name="ck_users_rol",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_rol", "users", ["rol"])

    op.create_table(
        "caballos",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("nombre", sa.String(100), nullable=False),
        sa.Column("tipo", sa.String(20), nullable=False, server_default="escuela"),
        sa.Column("estado", sa.String(20), nullable=False, server_default="activo"),
        sa.Column("limite_clases_dia", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("dueno_id", sa.String(26), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("dueno_id2", sa.String(26), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("tipo IN ('escuela', 'privado')", name="ck_caballos_tipo"),
        sa.CheckConstraint(
            "estado IN ('activo', 'descanso', 'lesionado')", name="ck_caballos_estado"
        ),
        sa.CheckConstraint(
            "(tipo = 'privado' AND dueno_id IS NOT NULL) "
            "OR (tipo = 'escuela' AND dueno_id IS NULL AND dueno_id2 IS NULL)",
            name="ck_caballos_owner_matches_tipo",
        ),
        sa.CheckConstraint("limite_clases_dia > 0", name="ck_caballos_limite_positive"),
    )

    op.create_table(
        "profesores",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("especialidad", sa.String(100), nullable=True),
        sa.Column("porcentaje_escuelita", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("porcentaje_pension", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sa.CheckConstraint(
            "porcentaje_escuelita >= 0 AND porcentaje_escuelita <= 100",
            name="ck_profesores_pct_escuelita",
        ),
        sa.CheckConstraint(
            "porcentaje_pension >= 0 AND porcentaje_pension <= 100",
            name="ck_profesores_pct_pension",
        ),
    )

    op.create_table(
        "horarios_profesores",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("profesor_id", sa.String(26), sa.ForeignKey("profesores.id"), nullable=False),
        sa.Column("dia_semana", sa.Integer(), nullable=False),
        sa.Column("hora_inicio", sa.Time(), nullable=False),
        sa.Column("hora_fin", sa.Time(), nullable=False),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("dia_semana >= 0 AND dia_semana <= 6", name="ck_horarios_prof_dia"),
        sa.CheckConstraint("hora_fin > hora_inicio", name="ck_horarios_prof_range"),
    )
    op.create_index(
        "ix_horarios_profesores_profesor_id", "horarios_profesores", ["profesor_id"]
    )

    op.create_table(
        "planes",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("nombre", sa.String(100), nullable=False),
        sa.Column("tipo", sa.String(30), nullable=False),
        sa.Column("clases_mes", sa.Integer(), nullable=False),
        sa.Column("precio", sa.Numeric(12, 2), nullable=False),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "tipo IN ('escuelita', 'pension_completa', 'media_pension')", name="ck_planes_tipo"
        ),
        sa.CheckConstraint("clases_mes >= 0", name="ck_planes_clases_non_negative"),
        sa.CheckConstraint("precio >= 0", name="ck_planes_precio_non_negative"),
    )

    op.create_table(
        "suscripciones",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("plan_id", sa.String(26), sa.ForeignKey("planes.id"), nullable=False),
        sa.Column("fecha_inicio", sa.Date(), nullable=False),
        sa.Column("fecha_fin", sa.Date(), nullable=True),
        sa.Column("clases_incluidas", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("clases_usadas", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("activa", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("clases_usadas >= 0", name="ck_suscripciones_usadas_non_negative"),
    )
    op.create_index("ix_suscripciones_user_id", "suscripciones", ["user_id"])

    op.create_table(
        "clases_mensuales",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("suscripcion_id", sa.String(26), sa.ForeignKey("suscripciones.id"), nullable=False),
        sa.Column("mes", sa.Integer(), nullable=False),
        sa.Column("anio", sa.Integer(), nullable=False),
        sa.Column("clases_usadas", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("suscripcion_id", "mes", "anio", name="uq_clases_mensuales_periodo"),
        sa.CheckConstraint("mes >= 1 AND mes <= 12", name="ck_clases_mensuales_mes"),
        sa.CheckConstraint("clases_usadas >= 0", name="ck_clases_mensuales_usadas_non_negative"),
    )

    op.create_table(
        "horarios_fijos",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("profesor_id", sa.String(26), sa.ForeignKey("profesores.id"), nullable=False),
        sa.Column("caballo_id", sa.String(26), sa.ForeignKey("caballos.id"), nullable=True),
        sa.Column("dia_semana", sa.Integer(), nullable=False),
        sa.Column("hora_inicio", sa.Time(), nullable=False),
        sa.Column("hora_fin", sa.Time(), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("dia_semana >= 0 AND dia_semana <= 6", name="ck_horarios_fijos_dia"),
    )
    op.create_index("ix_horarios_fijos_user_id", "horarios_fijos", ["user_id"])

    op.create_table(
        "clases",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("profesor_id", sa.String(26), sa.ForeignKey("profesores.id"), nullable=False),
        sa.Column("caballo_id", sa.String(26), sa.ForeignKey("caballos.id"), nullable=False),
        sa.Column("fecha", sa.Date(), nullable=False),
        sa.Column("hora_inicio", sa.Time(), nullable=False),
        sa.Column("hora_fin", sa.Time(), nullable=False),
        sa.Column("estado", sa.String(20), nullable=False, server_default="programada"),
        sa.Column("es_extra", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("es_reagendada", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("clase_original_id", sa.String(26), sa.ForeignKey("clases.id"), nullable=True),
        sa.Column("notas", sa.Text(), nullable=True),
        *_timestamps(with_updated=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("hora_fin > hora_inicio", name="ck_clases_time_order"),
        sa.CheckConstraint(
            "estado IN ('programada', 'completada', 'cancelada', 'reagendada')",
            name="ck_clases_estado",
        ),
    )
    # Second line of defense against two bookings passing validation together
    op.create_index(
        "uq_clases_profesor_slot",
        "clases",
        ["profesor_id", "fecha", "hora_inicio"],
        unique=True,
        postgresql_where=PROGRAMADA_ONLY,
        sqlite_where=PROGRAMADA_ONLY,
    )
    op.create_index(
        "uq_clases_caballo_slot",
        "clases",
        ["caballo_id", "fecha", "hora_inicio"],
        unique=True,
        postgresql_where=PROGRAMADA_ONLY,
        sqlite_where=PROGRAMADA_ONLY,
    )
    op.create_index("ix_clases_user_fecha", "clases", ["user_id", "fecha"])
    op.create_index("ix_clases_profesor_fecha", "clases", ["profesor_id", "fecha"])
    op.create_index("ix_clases_caballo_fecha", "clases", ["caballo_id", "fecha"])

    op.create_table(
        "facturas",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("suscripcion_id", sa.String(26), sa.ForeignKey("suscripciones.id"), nullable=False),
        sa.Column("mes", sa.Integer(), nullable=False),
        sa.Column("anio", sa.Integer(), nullable=False),
        sa.Column("monto", sa.Numeric(12, 2), nullable=False),
        sa.Column("estado", sa.String(20), nullable=False, server_default="pendiente"),
        sa.Column("fecha_vencimiento", sa.Date(), nullable=False),
        sa.Column("pagada", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fecha_pago", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("suscripcion_id", "mes", "anio", name="uq_facturas_periodo"),
        sa.CheckConstraint("mes >= 1 AND mes <= 12", name="ck_facturas_mes"),
        sa.CheckConstraint("monto >= 0", name="ck_facturas_monto_non_negative"),
    )
    op.create_index("ix_facturas_user_id", "facturas", ["user_id"])

    op.create_table(
        "comprobantes",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("factura_id", sa.String(26), sa.ForeignKey("facturas.id"), nullable=False),
        sa.Column("user_id", sa.String(26), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("archivo_url", sa.String(500), nullable=False),
        sa.Column("nombre_archivo", sa.String(255), nullable=True),
        sa.Column("tipo_archivo", sa.String(100), nullable=True),
        sa.Column("monto", sa.Numeric(12, 2), nullable=False),
        sa.Column("estado", sa.String(20), nullable=False, server_default="pendiente"),
        sa.Column("fecha_subida", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("fecha_revision", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revisado_por", sa.String(26), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("observaciones", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "estado IN ('pendiente', 'aprobado', 'rechazado')", name="ck_comprobantes_estado"
        ),
    )
    op.create_index("ix_comprobantes_factura_id", "comprobantes", ["factura_id"])


def downgrade() -> None:
    """Drop the academy schema."""
    op.drop_table("comprobantes")
    op.drop_table("facturas")
    op.drop_index("uq_clases_caballo_slot", table_name="clases")
    op.drop_index("uq_clases_profesor_slot", table_name="clases")
    op.drop_table("clases")
    op.drop_table("horarios_fijos")
    op.drop_table("clases_mensuales")
    op.drop_table("suscripciones")
    op.drop_table("planes")
    op.drop_table("horarios_profesores")
    op.drop_table("profesores")
    op.drop_table("caballos")
    op.drop_table("users")
