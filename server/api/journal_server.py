"""FastAPI server for signup, journal entries and correlation analysis."""

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from server.api.schemas import (
    AnalyzeRequest,
    ConfirmRequest,
    SaveInputsRequest,
    SignupRequest,
)
from server.datastore.engine import close_db, get_session_factory, init_db
from server.datastore.entry_store import create_entry_store
from server.exceptions import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    http_exception_handler,
)
from server.services.cache import ExpiringStore
from server.services.confirmation import ConfirmationService
from server.services.errors import (
    ConfirmationError,
    EmailDeliveryError,
    InvalidKeyError,
    NoEntriesError,
    StoreError,
)
from server.services.journal import JournalService
from server.services.mailer import Mailer, SmtpMailer
from server.services.sweeper import ExpirySweeper
from server.settings import Settings, global_settings


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.debug(f"Rejected malformed body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"message": "Invalid request body."})


class JournalServer:
    """HTTP server for the health journal."""

    def __init__(self, settings: Settings | None = None, mailer: Mailer | None = None):
        self.settings = settings or global_settings
        self.mailer = mailer or SmtpMailer(self.settings)
        self.codes = ExpiringStore(
            prefix="confirm_",
            max_size=self.settings.confirmation_store_max_size,
            default_ttl=timedelta(minutes=self.settings.confirmation_code_ttl_minutes),
            retention=timedelta(
                minutes=self.settings.confirmation_code_retention_minutes
            ),
        )
        self.sweeper = ExpirySweeper(
            self.codes, self.settings.confirmation_sweep_interval_minutes
        )
        self.confirmation: ConfirmationService | None = None
        self.journal: JournalService | None = None

        self.app = FastAPI(title="MAMA Journal Server", lifespan=self.lifespan)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.settings.cors_origin_list,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self.app.add_exception_handler(StarletteHTTPException, http_exception_handler)
        self.app.add_exception_handler(
            RequestValidationError, request_validation_handler
        )

        # Register routes
        self.app.post("/signup")(self.signup)
        self.app.post("/confirm")(self.confirm)
        self.app.post("/save-inputs")(self.save_inputs)
        self.app.post("/analyze-data")(self.analyze_data)
        self.app.get("/health")(self.health_check)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        logger.info("Initializing database...")
        await init_db(self.settings.database_url, self.settings.database_echo)
        session_factory = get_session_factory()

        store = create_entry_store(
            self.settings.entry_store_backend,
            self.settings.data_dir,
            session_factory,
        )
        self.journal = JournalService(store)
        self.confirmation = ConfirmationService(
            self.codes,
            self.mailer,
            session_factory,
            ttl_minutes=self.settings.confirmation_code_ttl_minutes,
        )
        logger.info(f"Journal entries stored with the {store.backend} backend")

        self.sweeper.start()
        try:
            yield
        finally:
            self.sweeper.stop()
            stats = self.codes.get_stats().to_dict()
            logger.info(f"Confirmation store stats: {stats}")
            await self.codes.clear()
            logger.info("Closing database connections...")
            await close_db()

    async def signup(self, payload: SignupRequest):
        """Send a confirmation code to a new user's email."""
        if not payload.email or not payload.password:
            raise BadRequestError("Email and password required")

        try:
            await self.confirmation.request_code(payload.email)
        except EmailDeliveryError as e:
            logger.error(f"Signup failed for {payload.email}: {e}")
            raise InternalError("Error sending email")

        return {"message": "Confirmation code sent to your email!"}

    async def confirm(self, payload: ConfirmRequest):
        """Confirm a code and create the account."""
        if not payload.email or not payload.code or not payload.password:
            raise BadRequestError("Email, code, and password required")

        try:
            await self.confirmation.confirm(
                payload.email, payload.code, payload.password
            )
        except ConfirmationError as e:
            if e.conflict:
                raise ConflictError(str(e))
            raise BadRequestError(str(e))

        return {"message": "Account confirmed and created successfully!"}

    async def save_inputs(self, payload: SaveInputsRequest):
        """Save the entry for one date."""
        if not payload.has_required_fields():
            raise BadRequestError("All required fields must be provided.")

        try:
            await self.journal.save_entry(
                payload.email,
                payload.date,
                payload.diet,
                payload.pain,
                payload.exercise,
                payload.notes,
            )
        except InvalidKeyError:
            raise BadRequestError("Invalid email or date.")
        except StoreError as e:
            logger.error(f"Error saving inputs: {e}")
            raise InternalError("Error saving inputs.")

        return {"message": "Inputs saved successfully!"}

    async def analyze_data(self, payload: AnalyzeRequest):
        """Correlate a pain level with words from one entry category."""
        if not payload.email:
            raise BadRequestError("Email required")

        try:
            result = await self.journal.analyze(
                payload.email, payload.pain_level, payload.category
            )
        except NoEntriesError:
            raise NotFoundError("No data found for this email.")
        except InvalidKeyError:
            raise BadRequestError("Invalid email or date.")
        except StoreError as e:
            logger.error(f"Error loading data: {e}")
            raise InternalError("Error loading data.")

        return result.to_dict()

    async def health_check(self):
        """Health check endpoint."""
        return {"status": "ok", "service": "mama-journal"}


def create_app(
    settings: Settings | None = None, mailer: Mailer | None = None
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Settings to use (defaults to global_settings)
        mailer: Mail sender (defaults to SmtpMailer)

    Returns:
        FastAPI app
    """
    server = JournalServer(settings, mailer)
    return server.app
