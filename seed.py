"""
Seed a development database with a master workflow, approvers and sample data.
"""
from app.database import SessionLocal, engine, Base
from app.auth import get_password_hash
from app.models import (
    Approval,
    ApprovalHistory,
    ApprovalStep,
    Approver,
    ApprovalWorkflowTemplate,
    ApprovalStepTemplate,
    AwardApprovalHistory,
    AwardWinner,
    AwardWorkflow,
    Award,
    BRFQ,
    ModificationHistory,
    ModificationRequest,
    PauseAction,
    PauseReason,
    ProcurementRequest,
    RequestItem,
    Supplier,
    User,
)

# Create tables
Base.metadata.create_all(bind=engine)

db = SessionLocal()

# Clear existing data
for model in (
    ApprovalHistory, ApprovalStep, Approval, ModificationHistory, ModificationRequest,
    AwardApprovalHistory, AwardWinner, Award, AwardWorkflow, PauseAction, PauseReason,
    RequestItem, BRFQ, Supplier, ProcurementRequest,
    ApprovalStepTemplate, ApprovalWorkflowTemplate, Approver, User,
):
    db.query(model).delete()

# Users who sign in to the approver dashboard
users = [
    User(email="admin@procurehub.local", hashed_password=get_password_hash("admin12345"), display_name="Admin"),
    User(email="alice@procurehub.local", hashed_password=get_password_hash("alice12345"), display_name="Alice"),
    User(email="bob@procurehub.local", hashed_password=get_password_hash("bob12345"), display_name="Bob"),
]
db.add_all(users)
db.flush()

approvers = [
    Approver(name="Alice", email="alice@procurehub.local", role="Manager", user_id=users[1].id),
    Approver(name="Bob", email="bob@procurehub.local", role="Finance", user_id=users[2].id),
]

template = ApprovalWorkflowTemplate(name="Master Workflow", default_sla="48 hrs")
template.steps = [
    ApprovalStepTemplate(order=1, role="Manager", approver_name="Alice", is_required=True),
    ApprovalStepTemplate(order=2, role="Finance", approver_name="Bob", sla_duration="24 hrs"),
]

requests = [
    ProcurementRequest(title="Laptops for onboarding", description="10 developer laptops", request_type="RFQ", requester_id=users[0].id),
    ProcurementRequest(title="Office cleaning contract", description="12 month contract", request_type="RFP", requester_id=users[0].id),
]

suppliers = [
    Supplier(company_name="Acme Supplies", registration_email="sales@acme.test"),
    Supplier(company_name="Globex", registration_email="rfq@globex.test"),
]
db.add_all(suppliers)
db.flush()

brfq = BRFQ(
    rfq_id="RFQ-0001",
    title="Office chairs",
    approval_status="pending",
    currency="USD",
    notes_to_supplier="Ergonomic models only",
    suppliers_selected=[str(s.id) for s in suppliers],
)
brfq.items = [
    RequestItem(description="Task chair", uom="EA", quantity=25),
    RequestItem(description="Armrest kit", uom="EA", quantity=25),
]

pause_reasons = [
    PauseReason(key="supply", label="Supply disruption"),
    PauseReason(key="spec_change", label="Specification change"),
    PauseReason(key="budget", label="Budget review"),
]

step_count = len(template.steps)

db.add_all(approvers + requests + pause_reasons + [template, brfq])
db.commit()
db.close()

print("Database seeded successfully!")
print(f"  - {len(users)} users")
print(f"  - {len(approvers)} approvers")
print(f"  - {step_count} workflow steps")
print(f"  - {len(requests)} draft requests")
print(f"  - {len(pause_reasons)} pause reasons")
print("  - 1 BRFQ pending approval")
