import datetime
import sqlalchemy
import sqlmodel


class StorageItemModel(sqlmodel.SQLModel, table=True):
    """A durable key/value item.

    Each key holds one serialized document, the way a browser keeps
    ``localStorage`` entries.
    """

    __tablename__ = 'storage_items'  # type: ignore

    key: str = sqlmodel.Field(primary_key=True)
    value: str = sqlmodel.Field(
        sa_column=sqlalchemy.Column(sqlalchemy.Text, nullable=False)
    )
    updated_at: datetime.datetime = sqlmodel.Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        sa_column=sqlalchemy.Column(sqlalchemy.TIMESTAMP(timezone=True)),
    )
