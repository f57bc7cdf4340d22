import bcrypt

from todo_auth.app.repositories.errors import DuplicateRecordError
from todo_auth.app.services.password_policy import PasswordPolicy
from todo_auth.app.services.refresh_token_manager import RefreshTokenManager
from todo_auth.app.services.token_issuer import ITokenIssuer
from todo_auth.app.services.unit_of_work import UnitOfWork
from todo_auth.app.services.user_locks import UserLockRegistry
from todo_auth.domain.base import normalize_email
from todo_auth.domain.entities import User
from todo_auth.libs.result import Result, Return
from . import errors
from .dtos import AuthResponse, RegisterCommand
from .session_issuer import issue_session


class RegisterUseCase:
    """
    Register Use Case

    Command/Response Pattern:
    - Input: RegisterCommand (validated business intent)
    - Output: Result[AuthResponse] (structured response)

    Business Logic:
    1. Check password strength
    2. Check if email already exists for a local account
    3. Hash password with bcrypt cost factor 12
    4. Create User with provider=local
    5. Issue refresh token (revoking any previous one) and commit
    6. Sign access token and return the session
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_issuer: ITokenIssuer,
        refresh_tokens: RefreshTokenManager,
        user_locks: UserLockRegistry,
        password_policy: PasswordPolicy = None,
    ):
        self.uow = uow
        self.token_issuer = token_issuer
        self.refresh_tokens = refresh_tokens
        self.user_locks = user_locks
        self.password_policy = password_policy or PasswordPolicy()

    async def execute(self, command: RegisterCommand) -> Result[AuthResponse]:
        """
        Execute register use case

        Args:
            command: RegisterCommand with email and password

        Returns:
            Result[AuthResponse] with user and tokens,
            Error(WEAK_PASSWORD) or Error(EMAIL_ALREADY_EXISTS)
        """
        problems = self.password_policy.validate(command.password)
        if problems:
            return Return.err(errors.weak_password(problems))

        email = normalize_email(command.email)

        async with self.uow:
            existing_user = await self.uow.users.get_by_email(email)
            if existing_user:
                return Return.err(errors.EMAIL_ALREADY_EXISTS)

            password_hash = bcrypt.hashpw(
                command.password.encode("utf-8"), bcrypt.gensalt(12)
            )
            try:
                user = await self.uow.users.create(
                    User.local(email, password_hash.decode("utf-8"))
                )
            except DuplicateRecordError:
                # Lost a race with a concurrent registration
                return Return.err(errors.EMAIL_ALREADY_EXISTS)

            response = await issue_session(
                self.uow, user, self.token_issuer, self.refresh_tokens, self.user_locks
            )
            return Return.ok(response)
