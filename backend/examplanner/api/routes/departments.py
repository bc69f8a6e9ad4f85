from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from examplanner.api.deps import get_db
from examplanner.models.course import Course
from examplanner.models.department import Department
from examplanner.schemas.department import DepartmentCreate, DepartmentOut, DepartmentUpdate

router = APIRouter()


@router.get("/", response_model=list[DepartmentOut])
def list_departments(db: Session = Depends(get_db)) -> list[DepartmentOut]:
    return list(db.execute(select(Department).order_by(Department.name)).scalars())


@router.post("/", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(payload: DepartmentCreate, db: Session = Depends(get_db)) -> DepartmentOut:
    existing = db.execute(select(Department).where(Department.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Department name already exists")
    department = Department(**payload.model_dump())
    db.add(department)
    db.commit()
    db.refresh(department)
    return department


@router.put("/{department_id}", response_model=DepartmentOut)
def update_department(
    department_id: str,
    payload: DepartmentUpdate,
    db: Session = Depends(get_db),
) -> DepartmentOut:
    department = db.get(Department, department_id)
    if department is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")
    existing = db.execute(
        select(Department).where(Department.name == payload.name, Department.id != department_id)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Department name already exists")
    department.name = payload.name
    db.commit()
    db.refresh(department)
    return department


@router.delete("/{department_id}")
def delete_department(department_id: str, db: Session = Depends(get_db)) -> dict:
    department = db.get(Department, department_id)
    if department is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found")
    in_use = db.execute(select(Course.id).where(Course.department_id == department_id).limit(1)).first()
    if in_use:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Department still has courses")
    db.delete(department)
    db.commit()
    return {"success": True}
