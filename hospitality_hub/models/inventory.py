from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Text, func
from hospitality_hub.database import Base

class StorageArea(Base):
    __tablename__ = "storage_areas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    brand = Column(String, nullable=True)
    category = Column(String, nullable=True)
    par_level = Column(Integer, default=0)
    created_at = Column(DateTime, default=func.now())
