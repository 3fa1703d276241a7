from akvora.extensions import db
from akvora.utils.dates import utcnow, isoformat
from .enums import UserRole


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    # Identity provider subject; admins created locally have none
    clerk_id = db.Column(db.String(255), unique=True, nullable=True, index=True)
    # Public member number, unique per user and numbered per registration year
    akvora_id = db.Column(db.String(32), unique=True, nullable=True)
    registered_year = db.Column(db.Integer, nullable=True)
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False, default="")
    last_name = db.Column(db.String(100), nullable=False, default="")
    phone = db.Column(db.String(20), nullable=False, default="")
    certificate_name = db.Column(db.String(255), nullable=False, default="")
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.USER)
    password = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def external_id(self) -> str:
        return self.clerk_id or str(self.id)

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self):
        return {
            "id": self.id,
            "clerk_id": self.clerk_id,
            "akvora_id": self.akvora_id,
            "registered_year": self.registered_year,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "certificate_name": self.certificate_name,
            "role": self.role.value if self.role else None,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
