# tests/conftest.py
import io
import zipfile

import pytest
from httpx import AsyncClient, ASGITransport

from bcalm.api import deps
from bcalm.core.config import Settings
from bcalm.main import create_app
from bcalm.models.profile import ONBOARDING_COMPLETE
from bcalm.repositories.memory import build_memory_repositories
from bcalm.services.analysis import AnalysisService
from bcalm.services.assessment import AssessmentService
from bcalm.services.auth import CurrentUser
from bcalm.services.profile import ProfileService

TEST_USER_ID = "test-user-id"
OTHER_USER_ID = "other-user-id"
CALLBACK_SECRET = "test-callback-secret"

# comfortably above the 50 character extraction floor
CV_TEXT = (
    "Priya Sharma\npriya@example.com\n\n"
    "Experience\nProduct intern at Acme, shipped an onboarding flow used by 2,000 students.\n"
    "Skills\nSQL, Python, user interviews, roadmap planning\n"
)
CV_BYTES = CV_TEXT.encode("utf-8")

def corrupt_docx_bytes():
    """A zip that looks like a DOCX but whose XML does not parse."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("[Content_Types].xml", "<Types><Broken")
        zf.writestr("word/document.xml", CV_TEXT)
    return buf.getvalue()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        REPOSITORY_BACKEND="memory",
        AUTH_JWT_SECRET="test-jwt-secret",
        PUBLIC_BASE_URL="http://testserver",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        ANALYSIS_WEBHOOK_URL=None,
        ANALYSIS_CALLBACK_SECRET=CALLBACK_SECRET,
        # long enough that timers never fire mid-test unless a test wants them to
        ANALYSIS_PLACEHOLDER_DELAY_SEC=60.0,
    )

@pytest.fixture
def repos():
    return build_memory_repositories()

@pytest.fixture
async def assessment_service(repos):
    svc = AssessmentService(repos)
    await svc.seed_questions()
    return svc

@pytest.fixture
def profile_service(repos):
    return ProfileService(repos)

@pytest.fixture
async def analysis_service(repos, test_settings):
    svc = AnalysisService(repos, settings=test_settings)
    yield svc
    await svc.shutdown()

@pytest.fixture
def current_user():
    return CurrentUser(id=TEST_USER_ID, email="test@example.com", first_name="Test", last_name="User")

@pytest.fixture
def onboarded_profile(repos):
    """Factory: store a profile that has finished onboarding."""
    async def _make(user_id=TEST_USER_ID, **fields):
        data = {
            "email": f"{user_id}@example.com",
            "first_name": "Test",
            "last_name": "User",
            "target_role": "Product Manager",
            "years_experience": 1,
            "onboarding_status": ONBOARDING_COMPLETE,
            "personalization_quality": "full",
        }
        data.update(fields)
        return await repos.profiles.create(user_id, **data)
    return _make

@pytest.fixture
def app(test_settings, assessment_service, analysis_service, profile_service, current_user):
    """App wired to in-memory services; auth always resolves to `current_user`."""
    application = create_app(test_settings)
    application.dependency_overrides[deps.get_current_user] = lambda: current_user
    application.dependency_overrides[deps.get_assessment_service] = lambda: assessment_service
    application.dependency_overrides[deps.get_analysis_service] = lambda: analysis_service
    application.dependency_overrides[deps.get_profile_service] = lambda: profile_service
    return application

@pytest.fixture
def login_as(app):
    """Switch the authenticated user for subsequent requests."""
    def _login(user_id, **fields):
        user = CurrentUser(id=user_id, **fields)
        app.dependency_overrides[deps.get_current_user] = lambda: user
        return user
    return _login

@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
