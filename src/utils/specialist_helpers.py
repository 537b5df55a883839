"""
Specialist helper utilities for consistent specialist lookup across endpoints.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from models import Specialist

logger = logging.getLogger(__name__)


def get_active_specialist(db: Session, specialist_id: str) -> Optional[Specialist]:
    """Get an active specialist by ID, or None."""
    return db.query(Specialist).filter(
        Specialist.id == specialist_id,
        Specialist.is_active.is_(True)
    ).first()


def verify_specialist_exists(db: Session, specialist_id: str) -> Specialist:
    """
    Verify that a specialist exists and is active.

    Args:
        db: Database session
        specialist_id: Specialist ID

    Returns:
        The Specialist

    Raises:
        HTTPException(404) if the specialist is not found or inactive
    """
    specialist = get_active_specialist(db, specialist_id)
    if specialist is None:
        logger.info(f"Specialist {specialist_id} not found or inactive")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Especialista no encontrado"
        )
    return specialist
