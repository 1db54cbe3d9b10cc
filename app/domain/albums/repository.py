"""Album repository - Database operations for albums and photos"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Album, Event, Photo


class AlbumRepository:
    """Repository for album and photo database operations"""

    @staticmethod
    def get_albums(db: Session, photographer_id: str, event_id: Optional[str] = None) -> list[Album]:
        """Get all albums for a photographer, optionally for one event"""
        query = db.query(Album).join(Event, Album.event_id == Event.id).filter(
            Event.photographer_id == photographer_id
        )
        if event_id:
            query = query.filter(Album.event_id == event_id)
        return query.order_by(Album.created_at.desc()).all()

    @staticmethod
    def get_album_by_id(db: Session, album_id: str, photographer_id: str) -> Optional[Album]:
        return (
            db.query(Album)
            .join(Event, Album.event_id == Event.id)
            .filter(Album.id == album_id, Event.photographer_id == photographer_id)
            .first()
        )

    @staticmethod
    def get_album_by_share_token(db: Session, share_token: str) -> Optional[Album]:
        """Public lookup; activity and expiry are checked by the caller"""
        return db.query(Album).filter(Album.share_token == share_token).first()

    @staticmethod
    def create_album(db: Session, event_id: str, name: str, **album_data) -> Album:
        album = Album(event_id=event_id, name=name, **album_data)
        db.add(album)
        db.commit()
        db.refresh(album)
        return album

    @staticmethod
    def update_album(db: Session, album: Album, **updates) -> Album:
        """Update an album; keys explicitly passed are written, including None"""
        for key, value in updates.items():
            if hasattr(album, key):
                setattr(album, key, value)

        db.commit()
        db.refresh(album)
        return album

    @staticmethod
    def delete_album(db: Session, album: Album) -> None:
        """Delete an album (photos cascade)"""
        db.delete(album)
        db.commit()

    @staticmethod
    def add_photos(db: Session, album_id: str, photos: list[dict]) -> list[Photo]:
        created = []
        for photo_data in photos:
            path = photo_data["path"]
            photo = Photo(
                album_id=album_id,
                filename=photo_data["filename"],
                original_path=path,
                thumbnail_path=path,
                watermarked_path=path,
                price=photo_data.get("price", 25.0),
                photo_metadata=photo_data.get("metadata") or {},
            )
            db.add(photo)
            created.append(photo)

        db.commit()
        for photo in created:
            db.refresh(photo)
        return created

    @staticmethod
    def get_photos(db: Session, album_id: str) -> list[Photo]:
        return db.query(Photo).filter(Photo.album_id == album_id).order_by(Photo.filename.asc()).all()

    @staticmethod
    def get_photo_in_album(db: Session, album_id: str, photo_id: str) -> Optional[Photo]:
        return db.query(Photo).filter(Photo.id == photo_id, Photo.album_id == album_id).first()

    @staticmethod
    def delete_photo(db: Session, photo: Photo) -> None:
        db.delete(photo)
        db.commit()

    @staticmethod
    def set_photo_selected(db: Session, photo: Photo, selected: bool) -> Photo:
        photo.is_selected = selected
        db.commit()
        db.refresh(photo)
        return photo

    @staticmethod
    def replace_selection(db: Session, album_id: str, photo_ids: set[str]) -> list[Photo]:
        """Mark exactly the given photos of an album as selected"""
        photos = db.query(Photo).filter(Photo.album_id == album_id).all()
        for photo in photos:
            photo.is_selected = photo.id in photo_ids
        db.commit()
        return [p for p in photos if p.is_selected]

    @staticmethod
    def get_selected_photos(db: Session, album_id: str) -> list[Photo]:
        return (
            db.query(Photo)
            .filter(Photo.album_id == album_id, Photo.is_selected.is_(True))
            .order_by(Photo.filename.asc())
            .all()
        )
