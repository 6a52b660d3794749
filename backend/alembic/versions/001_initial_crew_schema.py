"""Initial migration: leagues, groups, matchdays, teams, referees, matches with crew slots

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None

CREW_SLOTS = ("central", "assistant_1", "assistant_2", "fourth_official", "assessor")


def upgrade() -> None:
    op.create_table(
        "league",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("season", sa.String(), nullable=True),
        sa.Column("central_tolerance", sa.Float(), nullable=True),
        sa.Column("competency_policy", sa.String(), nullable=False, server_default="NONE"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_league_tenant_id", "league", ["tenant_id"])

    op.create_table(
        "leaguegroup",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
    )
    op.create_index("ix_leaguegroup_league_id", "leaguegroup", ["league_id"])

    op.create_table(
        "matchday",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["leaguegroup.id"]),
        sa.UniqueConstraint("group_id", "number", name="uq_group_matchday_number"),
    )
    op.create_index("ix_matchday_group_id", "matchday", ["group_id"])

    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("difficulty_tier", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["group_id"], ["leaguegroup.id"]),
        sa.UniqueConstraint("group_id", "name", name="uq_group_team_name"),
    )
    op.create_index("ix_team_group_id", "team", ["group_id"])

    op.create_table(
        "referee",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("tier", sa.String(), nullable=True),
        sa.Column("zones", sa.JSON(), nullable=False),
        sa.Column("roles_allowed", sa.JSON(), nullable=False),
        sa.Column("can_assess", sa.Boolean(), nullable=False),
        sa.Column("competency_override", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    crew_columns = []
    crew_fks = []
    for slot in CREW_SLOTS:
        crew_columns.append(sa.Column(f"{slot}_referee_id", sa.Integer(), nullable=True))
        crew_columns.append(sa.Column(f"{slot}_label", sa.String(), nullable=True))
        crew_fks.append(sa.ForeignKeyConstraint([f"{slot}_referee_id"], ["referee.id"]))

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("matchday_id", sa.Integer(), nullable=False),
        sa.Column("matchday_number", sa.Integer(), nullable=False),
        sa.Column("home_team_id", sa.Integer(), nullable=True),
        sa.Column("away_team_id", sa.Integer(), nullable=True),
        sa.Column("kickoff", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("difficulty", sa.Integer(), nullable=True),
        *crew_columns,
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["leaguegroup.id"]),
        sa.ForeignKeyConstraint(["matchday_id"], ["matchday.id"]),
        sa.ForeignKeyConstraint(["home_team_id"], ["team.id"]),
        sa.ForeignKeyConstraint(["away_team_id"], ["team.id"]),
        *crew_fks,
    )
    for column in ("tenant_id", "league_id", "group_id", "matchday_id", "matchday_number", "kickoff"):
        op.create_index(f"ix_match_{column}", "match", [column])


def downgrade() -> None:
    op.drop_table("match")
    op.drop_table("referee")
    op.drop_table("team")
    op.drop_table("matchday")
    op.drop_table("leaguegroup")
    op.drop_table("league")
