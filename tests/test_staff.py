from payhub.extensions import db
from payhub.models import Job, JobType, Staff, User, UserRole
from tests.conftest import DEFAULT_PASSWORD, upload


def test_create_and_get_staff(client, admin, create_staff):
    staff = create_staff(admin, name="  Ada Obi ", email="Ada.Obi@School.edu",
                         department="Finance", salary=250000, joinedDate="2023-01-09")

    assert staff['name'] == "Ada Obi"
    assert staff['email'] == "ada.obi@school.edu"
    assert staff['institutionId'] == admin['institution_id']
    assert staff['isActive'] is True
    assert staff['joinedDate'] == "2023-01-09"

    response = client.get(f"/api/staff/{staff['id']}", headers=admin['headers'])
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['id'] == staff['id']
    assert data['payslips'] == []


def test_duplicate_staff_email_in_same_institution(client, admin, other_admin, create_staff):
    create_staff(admin, email="ada.obi@school.edu")

    duplicate = client.post('/api/staff', headers=admin['headers'],
                            json={"name": "Ada Again", "email": "ADA.OBI@school.edu"})
    assert duplicate.status_code == 400
    assert duplicate.get_json()['error'] == "Staff member with this email already exists"

    # Same email is fine in another institution
    create_staff(other_admin, email="ada.obi@school.edu")


def test_staff_validation(client, admin):
    response = client.post('/api/staff', headers=admin['headers'],
                           json={"name": "Ada Obi", "email": "ada@school.edu", "salary": -5})

    assert response.status_code == 400
    assert response.get_json()['error'] == "Salary must be positive"


def test_staff_is_tenant_scoped(client, admin, other_admin, create_staff):
    staff = create_staff(admin)

    not_found = client.get(f"/api/staff/{staff['id']}", headers=other_admin['headers'])
    assert not_found.status_code == 404
    assert not_found.get_json()['error'] == "Staff member not found"

    listing = client.get('/api/staff', headers=other_admin['headers'])
    assert listing.get_json()['data']['items'] == []

    cross_tenant = client.get(f"/api/staff?institutionId={admin['institution_id']}",
                              headers=other_admin['headers'])
    assert cross_tenant.status_code == 403


def test_list_staff_filters(client, admin, create_staff):
    create_staff(admin, name="Ada Obi", email="ada@school.edu", department="Finance", employeeId="EMP-001")
    create_staff(admin, name="Bola Ade", email="bola@school.edu", department="Registry")
    create_staff(admin, name="Chidi Eze", email="chidi@school.edu", department="Finance")

    search = client.get('/api/staff?search=emp-001', headers=admin['headers']).get_json()['data']
    assert [item['name'] for item in search['items']] == ["Ada Obi"]

    finance = client.get('/api/staff?department=Finance', headers=admin['headers']).get_json()['data']
    assert sorted(item['name'] for item in finance['items']) == ["Ada Obi", "Chidi Eze"]

    departments = client.get('/api/staff/departments', headers=admin['headers']).get_json()['data']
    assert departments == ["Finance", "Registry"]


def test_update_staff(client, admin, create_staff):
    staff = create_staff(admin)

    response = client.put(f"/api/staff/{staff['id']}", headers=admin['headers'],
                          json={"position": "Senior Accountant"})

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['position'] == "Senior Accountant"
    assert data['email'] == staff['email']


def test_delete_staff_is_soft(client, app, admin, create_staff):
    staff = create_staff(admin)

    response = client.delete(f"/api/staff/{staff['id']}", headers=admin['headers'])
    assert response.status_code == 200
    assert response.get_json()['message'] == "Staff member deactivated successfully"

    inactive = client.get('/api/staff?status=inactive', headers=admin['headers']).get_json()['data']
    assert [item['id'] for item in inactive['items']] == [staff['id']]
    with app.app_context():
        assert db.session.get(Staff, staff['id']).is_active is False


def test_staff_pagination(client, admin, create_staff):
    for index in range(25):
        create_staff(admin, name=f"Staff Member {index}", email=f"staff{index}@school.edu")

    response = client.get('/api/staff?page=2&limit=10', headers=admin['headers'])

    data = response.get_json()['data']
    assert len(data['items']) == 10
    assert data['pagination'] == {
        "page": 2,
        "limit": 10,
        "total": 25,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True
    }

    last_page = client.get('/api/staff?page=3&limit=10', headers=admin['headers']).get_json()['data']
    assert len(last_page['items']) == 5
    assert last_page['pagination']['hasNext'] is False

    fallback = client.get('/api/staff?page=abc&limit=0', headers=admin['headers']).get_json()['data']
    assert fallback['pagination']['page'] == 1
    assert fallback['pagination']['limit'] == 10


def test_csv_import_reports_duplicate_row(client, app, admin):
    csv_content = (
        "name,email,employeeId,department,salary\n"
        "Ada Obi,ada@school.edu,EMP-1,Finance,250000\n"
        "Bola Ade,bola@school.edu,EMP-2,Registry,180000\n"
        "Ada Twin,ada@school.edu,EMP-3,Finance,200000\n"
        "Chidi Eze,chidi@school.edu,EMP-4,Bursary,220000\n"
        "Dayo Lawal,dayo@school.edu,EMP-5,Library,150000\n"
    ).encode('utf-8')

    response = client.post('/api/staff/upload-csv', headers=admin['headers'],
                           data=upload(csv_content, 'staff.csv'), content_type='multipart/form-data')

    assert response.status_code == 200
    summary = response.get_json()['data']
    assert summary['totalProcessed'] == 5
    assert summary['successCount'] == 4
    assert summary['errorCount'] == 1
    assert summary['errors'] == ["Row 3: Staff with email ada@school.edu already exists"]

    with app.app_context():
        emails = sorted(staff.email for staff in Staff.query.filter_by(institution_id=admin['institution_id']))
        assert emails == ["ada@school.edu", "bola@school.edu", "chidi@school.edu", "dayo@school.edu"]
        job = db.session.get(Job, summary['jobId'])
        assert job.job_type == JobType.STAFF_IMPORT
        assert job.success_count == 4
        assert job.failed_count == 1


def test_csv_import_requires_name_and_email(client, admin):
    csv_content = b"name,email\nAda Obi,ada@school.edu\n,missing-name@school.edu\nNo Email,\n"

    response = client.post('/api/staff/upload-csv', headers=admin['headers'],
                           data=upload(csv_content, 'staff.csv'), content_type='multipart/form-data')

    summary = response.get_json()['data']
    assert summary['successCount'] == 1
    assert summary['errors'] == [
        "Row 2: Name and email are required",
        "Row 3: Name and email are required",
    ]


def test_csv_import_rejects_other_files(client, admin):
    response = client.post('/api/staff/upload-csv', headers=admin['headers'],
                           data=upload(b"%PDF-1.4", 'staff.pdf'), content_type='multipart/form-data')

    assert response.status_code == 400
    assert response.get_json()['error'] == "Only CSV files are allowed"


def test_csv_import_without_file(client, admin):
    response = client.post('/api/staff/upload-csv', headers=admin['headers'])

    assert response.status_code == 400
    assert response.get_json()['error'] == "No file uploaded"


def test_staff_account_grants_login(client, app, admin, create_staff, staff_login):
    staff = create_staff(admin)

    session = staff_login(admin, staff)

    assert session['user']['role'] == UserRole.STAFF
    assert session['institution_id'] == admin['institution_id']
    with app.app_context():
        assert db.session.get(Staff, staff['id']).user_id == session['user']['id']

    again = client.post(f"/api/staff/{staff['id']}/account", headers=admin['headers'],
                        json={"password": DEFAULT_PASSWORD})
    assert again.status_code == 400
    assert again.get_json()['error'] == "Staff member already has an account"


def test_staff_role_cannot_manage_staff(client, admin, create_staff, staff_login):
    session = staff_login(admin, create_staff(admin))

    response = client.get('/api/staff', headers=session['headers'])

    assert response.status_code == 403
    assert response.get_json()['error'] == "Access denied. Insufficient permissions."


def test_deleting_staff_disables_their_login(client, app, admin, create_staff, staff_login):
    staff = create_staff(admin)
    session = staff_login(admin, staff)

    client.delete(f"/api/staff/{staff['id']}", headers=admin['headers'])

    with app.app_context():
        assert db.session.get(User, session['user']['id']).is_active is False
    assert client.get('/api/auth/me', headers=session['headers']).status_code == 401


def test_super_admin_must_name_institution(client, admin, super_admin):
    missing = client.post('/api/staff', headers=super_admin['headers'],
                          json={"name": "Ada Obi", "email": "ada@school.edu"})
    assert missing.status_code == 400
    assert missing.get_json()['error'] == "institutionId is required"

    created = client.post('/api/staff', headers=super_admin['headers'], json={
        "name": "Ada Obi",
        "email": "ada@school.edu",
        "institutionId": admin['institution_id']
    })
    assert created.status_code == 201
    assert created.get_json()['data']['institutionId'] == admin['institution_id']


def test_csv_import_with_undecodable_row_imports_nothing(client, app, admin):
    valid_rows = ''.join(f"Staff Member {index},staff{index}@school.edu\n" for index in range(300))
    csv_content = b"name,email\n" + valid_rows.encode('utf-8') + b"Bad \xe9 Row,bad@school.edu\n"

    response = client.post('/api/staff/upload-csv', headers=admin['headers'],
                           data=upload(csv_content, 'staff.csv'), content_type='multipart/form-data')

    assert response.status_code == 400
    assert response.get_json()['error'] == "Invalid CSV format"
    with app.app_context():
        assert Staff.query.filter_by(institution_id=admin['institution_id']).count() == 0
        assert Job.query.filter_by(institution_id=admin['institution_id']).count() == 0

    retry = client.post('/api/staff/upload-csv', headers=admin['headers'],
                        data=upload(b"name,email\n" + valid_rows.encode('utf-8'), 'staff.csv'),
                        content_type='multipart/form-data')
    summary = retry.get_json()['data']
    assert summary['successCount'] == 300
    assert summary['errors'] == []
