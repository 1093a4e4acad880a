from typing import Optional

import attrs


@attrs.frozen
class Passenger:
    name: str
    phone: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        return {'name': self.name, 'phone': self.phone, 'email': self.email}

    @classmethod
    def from_dict(cls, data: dict) -> 'Passenger':
        return cls(name=data['name'], phone=data['phone'], email=data.get('email'))
