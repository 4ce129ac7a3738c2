from grammarhub.audit import AuditAction, AuditStatus, log, log_student
from grammarhub.db.repositories import audits as audit_repo


def test_log_persists_plain_strings(db_session):
    entry = log(
        db_session,
        action=AuditAction.STUDENT_APPROVE,
        status=AuditStatus.SUCCESS,
        target_type="student",
        target_id="STU001",
        actor="api-key",
        metadata={"old_status": "pending"},
    )
    assert entry.action_type == "student_approve"
    assert entry.status == "success"
    assert entry.metadata_json == {"old_status": "pending"}


def test_log_student_and_query(db_session):
    log_student(db_session, actor="STU009", student_id="STU001", action=AuditAction.STUDENT_BLOCK)
    log_student(db_session, actor="STU009", student_id="STU002", action=AuditAction.STUDENT_APPROVE)

    rows = audit_repo.get_audit_logs(db_session, target_id="STU001")
    assert [r.action_type for r in rows] == ["student_block"]
    assert rows[0].target_type == "student"
    assert rows[0].actor == "STU009"

    approvals = audit_repo.get_audit_logs(db_session, action_type="student_approve")
    assert len(approvals) == 1


def test_filter_by_actor(db_session):
    log_student(db_session, actor="cli", student_id="STU001", action=AuditAction.STUDENT_CREATE)
    log_student(db_session, actor="api-key", student_id="STU002", action=AuditAction.STUDENT_CREATE)

    rows = audit_repo.get_audit_logs(db_session, actor="cli")
    assert [r.target_id for r in rows] == ["STU001"]
