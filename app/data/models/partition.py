# app/data/models/partition.py
from sqlalchemy import Column, Integer, String, Text

from app.data.database import Base


class PartitionModel(Base):
    __tablename__ = "cart_partitions"

    name = Column(String(255), primary_key=True)
    #JSON z CartState
    value = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=1)
