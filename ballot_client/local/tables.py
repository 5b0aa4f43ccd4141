"""Local store tables - DDL and column types."""

from datetime import datetime

ELECTIONS_DDL = """
CREATE TABLE IF NOT EXISTS elections (
    id VARCHAR PRIMARY KEY,
    title VARCHAR NOT NULL,
    description VARCHAR,
    is_open BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP NOT NULL
)
"""

CANDIDATES_DDL = """
CREATE TABLE IF NOT EXISTS candidates (
    id VARCHAR PRIMARY KEY,
    election_id VARCHAR NOT NULL,
    name VARCHAR NOT NULL,
    position VARCHAR NOT NULL,
    description VARCHAR,
    image_url VARCHAR,
    created_at TIMESTAMP NOT NULL
)
"""

VOTERS_DDL = """
CREATE TABLE IF NOT EXISTS voters (
    id VARCHAR PRIMARY KEY,
    election_id VARCHAR NOT NULL,
    fingerprint VARCHAR NOT NULL,
    created_at TIMESTAMP NOT NULL,
    UNIQUE (election_id, fingerprint)
)
"""

# One vote per voter per position
VOTES_DDL = """
CREATE TABLE IF NOT EXISTS votes (
    id VARCHAR PRIMARY KEY,
    voter_id VARCHAR NOT NULL,
    candidate_id VARCHAR NOT NULL,
    election_id VARCHAR NOT NULL,
    position VARCHAR NOT NULL,
    created_at TIMESTAMP NOT NULL,
    UNIQUE (voter_id, position)
)
"""

ELECTION_RESULTS_DDL = """
CREATE OR REPLACE VIEW election_results AS
SELECT
    c.election_id,
    c.id AS candidate_id,
    c.name AS candidate_name,
    c.position,
    COUNT(v.id) AS total_votes,
    COALESCE(
        ROUND(
            100.0 * CAST(COUNT(v.id) AS DOUBLE)
            / NULLIF(CAST(SUM(COUNT(v.id)) OVER (PARTITION BY c.election_id, c.position) AS DOUBLE), 0),
            2
        ),
        0.0
    ) AS vote_percentage
FROM candidates c
LEFT JOIN votes v ON v.candidate_id = c.id
GROUP BY c.election_id, c.id, c.name, c.position
"""

ALL_DDL = [
    ELECTIONS_DDL,
    CANDIDATES_DDL,
    VOTERS_DDL,
    VOTES_DDL,
    ELECTION_RESULTS_DDL,
]

# Column -> python type, used to whitelist identifiers and coerce filter values
COLUMNS: dict[str, dict[str, type]] = {
    "elections": {
        "id": str,
        "title": str,
        "description": str,
        "is_open": bool,
        "created_at": datetime,
    },
    "candidates": {
        "id": str,
        "election_id": str,
        "name": str,
        "position": str,
        "description": str,
        "image_url": str,
        "created_at": datetime,
    },
    "voters": {
        "id": str,
        "election_id": str,
        "fingerprint": str,
        "created_at": datetime,
    },
    "votes": {
        "id": str,
        "voter_id": str,
        "candidate_id": str,
        "election_id": str,
        "position": str,
        "created_at": datetime,
    },
    "election_results": {
        "election_id": str,
        "candidate_id": str,
        "candidate_name": str,
        "position": str,
        "total_votes": int,
        "vote_percentage": float,
    },
}

VIEWS = {"election_results"}
ADMIN_TABLES = {"elections", "candidates"}
IMMUTABLE = {"id", "created_at"}
