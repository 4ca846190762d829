"""ORM models for the public catalogue entities created when a submission is approved."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text, func

from brote.models.base import Base, JSONType

events_bands = Table(
    "events_bands",
    Base.metadata,
    Column("id_event", Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("id_band", Integer, ForeignKey("bands.id", ondelete="CASCADE"), primary_key=True),
)

news_bands = Table(
    "news_bands",
    Base.metadata,
    Column("id_news", Integer, ForeignKey("news.id", ondelete="CASCADE"), primary_key=True),
    Column("id_band", Integer, ForeignKey("bands.id", ondelete="CASCADE"), primary_key=True),
)

videos_bands = Table(
    "videos_bands",
    Base.metadata,
    Column("id_video", Integer, ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("id_band", Integer, ForeignKey("bands.id", ondelete="CASCADE"), primary_key=True),
)


class Band(Base):
    __tablename__ = "bands"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=False, default="")
    slug = Column(String(255), nullable=False, index=True)
    social = Column(JSONType, nullable=True)


class Venue(Base):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    address = Column(String(512), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    slug = Column(String(255), nullable=False, index=True)
    latlng = Column(String(64), nullable=False, default="")
    city = Column(String(255), nullable=False, default="")


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    id_venue = Column(Integer, ForeignKey("venues.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    tags = Column(String(512), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    slug = Column(String(255), nullable=False, index=True)
    date_start = Column(String(32), nullable=False, default="")
    date_end = Column(String(32), nullable=False, default="")


class News(Base):
    __tablename__ = "news"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class Song(Base):
    __tablename__ = "songs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    id_band = Column(Integer, ForeignKey("bands.id", ondelete="SET NULL"), nullable=True)
    id_genre = Column(Integer, nullable=True)


class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    id_youtube = Column(String(64), nullable=False)


class _OwnershipLink:
    """Columns shared by the user-to-entity ownership tables."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    rol = Column(String(64), nullable=False, default="creador")
    status = Column(String(16), nullable=False, default="approved")


class ArtistLink(_OwnershipLink, Base):
    __tablename__ = "artist_links"

    artist_id = Column(Integer, nullable=False, index=True)


class EventLink(_OwnershipLink, Base):
    __tablename__ = "event_links"

    event_id = Column(Integer, nullable=False, index=True)


class VenueLink(_OwnershipLink, Base):
    __tablename__ = "venue_links"

    venue_id = Column(Integer, nullable=False, index=True)
