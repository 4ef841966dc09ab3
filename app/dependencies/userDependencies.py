from typing import Annotated, Optional
from fastapi import Depends
from app.modules.auth.dependencies import get_optional_user
from app.modules.auth.models import User

optional_user_dependency = Annotated[Optional[User], Depends(get_optional_user)]
