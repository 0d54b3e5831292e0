import os

import pytest

from payhub.extensions import db
from payhub.models import Job, JobStatus, JobType, Payslip, PayslipStatus
from payhub.tasks import payslip_tasks
from tests.conftest import upload

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< >>\n%%EOF\n"


@pytest.fixture
def create_payslip(client):
    def _create(session, staff=None, month="January", year=2024, **extra):
        payload = {"month": month, "year": year, "grossPay": 350000, "netPay": 290000}
        if staff is not None:
            payload["staffId"] = staff['id']
        payload.update(extra)
        response = client.post('/api/payslips', json=payload, headers=session['headers'])
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']
    return _create


def test_create_payslip_normalises_month(client, admin, create_staff, create_payslip):
    staff = create_staff(admin)

    payslip = create_payslip(admin, staff, month="january", deductions=60000)

    assert payslip['month'] == "January"
    assert payslip['year'] == 2024
    assert payslip['status'] == PayslipStatus.PROCESSING
    assert payslip['staffId'] == staff['id']
    assert payslip['staff']['email'] == staff['email']
    assert payslip['deductions'] == 60000
    assert 'filePath' not in payslip and 'file_path' not in payslip


@pytest.mark.parametrize("overrides, message", [
    ({"month": "Smarch"}, "Month must be a valid month name"),
    ({"year": 2019}, "Year must be 2020 or later"),
    ({"grossPay": 0}, "Gross pay must be positive"),
    ({"deductions": -1}, "Deductions cannot be negative"),
])
def test_payslip_validation(client, admin, create_staff, overrides, message):
    staff = create_staff(admin)
    payload = {"staffId": staff['id'], "month": "March", "year": 2024, "grossPay": 1000, "netPay": 900}
    payload.update(overrides)

    response = client.post('/api/payslips', json=payload, headers=admin['headers'])

    assert response.status_code == 400
    assert response.get_json()['error'] == message


def test_payslip_needs_a_recipient(client, admin):
    response = client.post('/api/payslips', headers=admin['headers'],
                           json={"month": "March", "year": 2024, "grossPay": 1000, "netPay": 900})

    assert response.status_code == 400
    assert response.get_json()['error'] == "Either staffId or userId is required"


def test_payslip_staff_must_be_in_institution(client, admin, other_admin, create_staff):
    foreign_staff = create_staff(other_admin)

    response = client.post('/api/payslips', headers=admin['headers'], json={
        "staffId": foreign_staff['id'], "month": "March", "year": 2024, "grossPay": 1000, "netPay": 900
    })

    assert response.status_code == 404
    assert response.get_json()['error'] == "Staff member not found"


def test_duplicate_period_rejected_within_institution_only(client, admin, other_admin, create_staff, create_payslip):
    staff = create_staff(admin)
    create_payslip(admin, staff, month="May", year=2024)

    duplicate = client.post('/api/payslips', headers=admin['headers'], json={
        "staffId": staff['id'], "month": "MAY", "year": 2024, "grossPay": 1000, "netPay": 900
    })
    assert duplicate.status_code == 400
    assert duplicate.get_json()['error'] == \
        "Payslip already exists for this staff member in the specified month and year"

    other_staff = create_staff(other_admin, email=staff['email'])
    create_payslip(other_admin, other_staff, month="May", year=2024)


def test_update_payslip_checks_period_uniqueness(client, admin, create_staff, create_payslip):
    staff = create_staff(admin)
    create_payslip(admin, staff, month="May")
    june = create_payslip(admin, staff, month="June")

    unchanged = client.put(f"/api/payslips/{june['id']}", headers=admin['headers'], json={"netPay": 300000})
    assert unchanged.status_code == 200
    assert unchanged.get_json()['data']['netPay'] == 300000

    clash = client.put(f"/api/payslips/{june['id']}", headers=admin['headers'], json={"month": "May"})
    assert clash.status_code == 400


def test_staff_user_sees_only_own_payslips(client, admin, create_staff, create_payslip, staff_login):
    ada = create_staff(admin, name="Ada Obi", email="ada@school.edu")
    bola = create_staff(admin, name="Bola Ade", email="bola@school.edu")
    # Created before the login exists; granting the login addresses it
    ada_january = create_payslip(admin, ada, month="January")
    bola_january = create_payslip(admin, bola, month="January")

    session = staff_login(admin, ada)
    ada_february = create_payslip(admin, ada, month="February")
    assert ada_february['userId'] == session['user']['id']

    listing = client.get('/api/payslips', headers=session['headers'])
    assert listing.status_code == 200
    items = listing.get_json()['data']['items']
    assert sorted(item['id'] for item in items) == sorted([ada_january['id'], ada_february['id']])
    assert all(item['userId'] == session['user']['id'] for item in items)

    forbidden = client.get(f"/api/payslips/{bola_january['id']}", headers=session['headers'])
    assert forbidden.status_code == 403

    own = client.get(f"/api/payslips/{ada_january['id']}", headers=session['headers'])
    assert own.status_code == 200

    cannot_create = client.post('/api/payslips', headers=session['headers'], json={
        "staffId": ada['id'], "month": "March", "year": 2024, "grossPay": 1, "netPay": 1
    })
    assert cannot_create.status_code == 403


def test_list_filters_and_staff_listing(client, admin, create_staff, create_payslip):
    ada = create_staff(admin, email="ada@school.edu")
    bola = create_staff(admin, name="Bola Ade", email="bola@school.edu")
    create_payslip(admin, ada, month="January", year=2024)
    create_payslip(admin, ada, month="February", year=2024)
    create_payslip(admin, bola, month="January", year=2023)

    january = client.get('/api/payslips?month=january', headers=admin['headers']).get_json()['data']
    assert january['pagination']['total'] == 2

    year_2023 = client.get('/api/payslips?year=2023', headers=admin['headers']).get_json()['data']
    assert [item['staffId'] for item in year_2023['items']] == [bola['id']]

    per_staff = client.get(f"/api/payslips/staff/{ada['id']}", headers=admin['headers']).get_json()['data']
    assert per_staff['pagination']['total'] == 2


def test_upload_pdf_makes_payslip_available(client, app, admin, create_staff, create_payslip, staff_login):
    staff = create_staff(admin)
    payslip = create_payslip(admin, staff)

    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(PDF_BYTES, 'january.pdf'), content_type='multipart/form-data')

    assert response.status_code == 202
    data = response.get_json()['data']
    assert data['statusUrl'] == f"/api/jobs/{data['jobId']}"
    assert data['payslip']['status'] == PayslipStatus.AVAILABLE
    assert data['payslip']['fileName'] == 'january.pdf'

    job = client.get(data['statusUrl'], headers=admin['headers']).get_json()['data']['job']
    assert job['status'] == JobStatus.COMPLETED
    assert job['progress']['percentage'] == 100
    assert job['results'] == {"success": 1, "failed": 0}

    with app.app_context():
        stored = db.session.get(Payslip, payslip['id'])
        assert stored.processed_at is not None
        assert os.path.basename(stored.file_path) != 'january.pdf'
        assert os.path.basename(stored.file_path).startswith('payslip-')

    session = staff_login(admin, staff)
    download = client.get(f"/api/payslips/{payslip['id']}/download", headers=session['headers'])
    assert download.status_code == 200
    assert download.mimetype == 'application/pdf'
    assert download.data == PDF_BYTES


def test_upload_of_broken_pdf_fails_processing(client, admin, create_staff, create_payslip):
    payslip = create_payslip(admin, create_staff(admin))

    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(b"this is not a pdf", 'january.pdf'), content_type='multipart/form-data')

    assert response.status_code == 202
    data = response.get_json()['data']
    assert data['payslip']['status'] == PayslipStatus.FAILED

    job = client.get(data['statusUrl'], headers=admin['headers']).get_json()['data']['job']
    assert job['status'] == JobStatus.FAILED
    assert job['errorMessage'] == "Uploaded file is not a valid PDF"

    download = client.get(f"/api/payslips/{payslip['id']}/download", headers=admin['headers'])
    assert download.status_code == 400
    assert download.get_json()['error'] == "Payslip file is not available"


def test_upload_rejects_non_pdf(client, admin, create_staff, create_payslip):
    payslip = create_payslip(admin, create_staff(admin))

    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(b"name,email\n", 'payroll.csv'), content_type='multipart/form-data')

    assert response.status_code == 400
    assert response.get_json()['error'] == "Only PDF files are allowed"


def test_upload_when_queue_is_down(client, app, admin, create_staff, create_payslip, monkeypatch):
    payslip = create_payslip(admin, create_staff(admin))

    def broker_down(*args, **kwargs):
        raise ConnectionError("Error 111 connecting to localhost:6379")

    monkeypatch.setattr(payslip_tasks.process_payslip_file, 'delay', broker_down)

    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(PDF_BYTES, 'january.pdf'), content_type='multipart/form-data')

    assert response.status_code == 503
    with app.app_context():
        assert db.session.get(Payslip, payslip['id']).status == PayslipStatus.FAILED
        job = Job.query.filter_by(institution_id=admin['institution_id']).one()
        assert job.status == JobStatus.FAILED


def test_jobs_are_tenant_scoped(client, admin, other_admin, create_staff, create_payslip):
    payslip = create_payslip(admin, create_staff(admin))
    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(PDF_BYTES, 'january.pdf'), content_type='multipart/form-data')
    status_url = response.get_json()['data']['statusUrl']

    assert client.get(status_url, headers=other_admin['headers']).status_code == 404


def test_delete_payslip(client, app, admin, create_staff, create_payslip):
    payslip = create_payslip(admin, create_staff(admin))

    response = client.delete(f"/api/payslips/{payslip['id']}", headers=admin['headers'])

    assert response.status_code == 200
    assert response.get_json()['message'] == "Payslip deleted successfully"
    with app.app_context():
        assert db.session.get(Payslip, payslip['id']) is None


def test_inspect_pdf(tmp_path):
    good = tmp_path / 'good.pdf'
    good.write_bytes(PDF_BYTES)
    empty = tmp_path / 'empty.pdf'
    empty.write_bytes(b'')

    assert payslip_tasks.inspect_pdf(str(good)) == (True, None)
    assert payslip_tasks.inspect_pdf(str(empty)) == (False, "Uploaded file is empty")
    assert payslip_tasks.inspect_pdf(str(tmp_path / 'missing.pdf')) == (False, "Uploaded file is missing")


def test_processing_error_marks_job_failed(client, admin, create_staff, create_payslip, monkeypatch):
    payslip = create_payslip(admin, create_staff(admin))

    def disk_error(path):
        raise OSError("Input/output error")

    monkeypatch.setattr(payslip_tasks, 'inspect_pdf', disk_error)

    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(PDF_BYTES, 'january.pdf'), content_type='multipart/form-data')

    assert response.status_code == 202
    data = response.get_json()['data']
    assert data['payslip']['status'] == PayslipStatus.FAILED

    job = client.get(data['statusUrl'], headers=admin['headers']).get_json()['data']['job']
    assert job['status'] == JobStatus.FAILED
    assert job['errorMessage'] == "Processing failed: Input/output error"


def test_stale_job_does_not_touch_newer_upload(client, app, admin, create_staff, create_payslip):
    payslip = create_payslip(admin, create_staff(admin))
    response = client.post(f"/api/payslips/{payslip['id']}/upload", headers=admin['headers'],
                           data=upload(PDF_BYTES, 'january.pdf'), content_type='multipart/form-data')
    assert response.get_json()['data']['payslip']['status'] == PayslipStatus.AVAILABLE

    with app.app_context():
        stale_job = Job(institution_id=admin['institution_id'], job_type=JobType.PAYSLIP_PROCESSING,
                        status=JobStatus.PENDING, total_items=1)
        db.session.add(stale_job)
        db.session.commit()

        result = payslip_tasks.process_payslip_file(stale_job.id, payslip['id'], '/uploads/payslip-old.pdf')

        assert result['error'] == payslip_tasks.SUPERSEDED_MESSAGE
        job = db.session.get(Job, stale_job.id)
        assert job.status == JobStatus.FAILED
        assert job.error_message == payslip_tasks.SUPERSEDED_MESSAGE
        assert db.session.get(Payslip, payslip['id']).status == PayslipStatus.AVAILABLE
