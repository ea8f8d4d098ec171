from sqlalchemy import JSON, Boolean, Column, DateTime, String, Uuid
from issue_tracker.database.config import Base


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Uuid, primary_key=True)
    project = Column(String, nullable=False, index=True)

    issue_title = Column(String, nullable=False)
    issue_text = Column(String, nullable=False)
    created_by = Column(String, nullable=False)
    assigned_to = Column(String, nullable=False, default="")
    status_text = Column(String, nullable=False, default="")

    created_on = Column(DateTime(timezone=True), nullable=False)
    updated_on = Column(DateTime(timezone=True), nullable=False)
    open = Column(Boolean, nullable=False, default=True)

    # Fields set by clients outside the columns above
    extra = Column(JSON, nullable=False, default=dict)
