"""
Relational schema for StillFace.

Four tables, created and dropped in this order: imports, data, codes, tags.
No foreign keys are declared: sf_data is created before sf_codes and
sf_imports is dropped before sf_data, which engines enforcing constraints
would reject. CodeData -> Code is resolved by join at read time.
"""

from sqlalchemy import Column, Date, Integer, MetaData, String, Table, Text

metadata = MetaData()

imports_table = Table(
    "sf_imports",
    metadata,
    Column("iid", Integer, primary_key=True, autoincrement=True),
    Column("filename", String(255), nullable=False),
    Column("syear", Integer, nullable=False),
    Column("fid", Integer, nullable=False),
    Column("pid", Integer, nullable=False),
    Column("alias", String(255), nullable=False),
    Column("date", Date, nullable=True),
    sqlite_autoincrement=True,
)

data_table = Table(
    "sf_data",
    metadata,
    Column("did", Integer, primary_key=True, autoincrement=True),
    Column("iid", Integer, nullable=False),
    Column("time", Integer, nullable=False),
    Column("duration", Integer, nullable=False),
    Column("cid", Integer, nullable=False),
    Column("comment", Text, nullable=False),
    sqlite_autoincrement=True,
)

codes_table = Table(
    "sf_codes",
    metadata,
    Column("cid", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    sqlite_autoincrement=True,
)

tags_table = Table(
    "sf_tags",
    metadata,
    Column("tid", Integer, primary_key=True, autoincrement=True),
    Column("value", String(255), nullable=False),
    sqlite_autoincrement=True,
)

# Fixed DDL order
TABLES = (imports_table, data_table, codes_table, tags_table)
TABLE_NAMES = tuple(t.name for t in TABLES)
