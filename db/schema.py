# SQL schema for the LeetCurve schedule store

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Tracked problems (one row per slug)
CREATE TABLE IF NOT EXISTS problems (
    slug TEXT PRIMARY KEY,
    question_id TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL,
    difficulty TEXT NOT NULL DEFAULT 'Medium',
    tags TEXT NOT NULL DEFAULT '[]',
    url TEXT NOT NULL DEFAULT '',
    origin TEXT NOT NULL DEFAULT 'com',
    stage INTEGER NOT NULL DEFAULT 0 CHECK(stage BETWEEN 0 AND 6),
    first_accepted_time INTEGER NOT NULL,
    last_review_time INTEGER NOT NULL,
    note TEXT NOT NULL DEFAULT '',
    code TEXT NOT NULL DEFAULT '',
    priority_score REAL NOT NULL DEFAULT 0
);

-- One row per accepted advance, including creation
CREATE TABLE IF NOT EXISTS review_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT NOT NULL,
    ts INTEGER NOT NULL,
    FOREIGN KEY (slug) REFERENCES problems (slug) ON DELETE CASCADE
);

-- Captured solutions
CREATE TABLE IF NOT EXISTS code_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT NOT NULL,
    code TEXT NOT NULL,
    lang TEXT NOT NULL DEFAULT '',
    time INTEGER NOT NULL,
    FOREIGN KEY (slug) REFERENCES problems (slug) ON DELETE CASCADE
);

-- Settings: user tag weights
CREATE TABLE IF NOT EXISTS tag_weights (
    tag TEXT PRIMARY KEY,
    weight REAL NOT NULL CHECK(weight > 0)
);

-- Ingestion events per local calendar day
CREATE TABLE IF NOT EXISTS activity_log (
    day TEXT PRIMARY KEY,
    count INTEGER NOT NULL DEFAULT 0
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_problems_stage ON problems (stage);
CREATE INDEX IF NOT EXISTS idx_problems_last_review ON problems (last_review_time);
CREATE INDEX IF NOT EXISTS idx_review_history_slug ON review_history (slug, id);
CREATE INDEX IF NOT EXISTS idx_code_history_slug ON code_history (slug, id);
"""
