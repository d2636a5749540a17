"""Salary configuration: dated rates and their resolution for a payroll month."""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import SalaryConfigType
from drivingschool.core.exceptions import NotFoundError, ValidationError
from drivingschool.core.models import SalaryConfig
from drivingschool.core.money import to_decimal
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .schemas import SalaryConfigCreate, SalaryConfigResponse, SalaryConfigUpdate

logger = logging.getLogger(__name__)


async def _get_or_404(db: AsyncSession, config_id: int) -> SalaryConfig:
    config = await db.get(SalaryConfig, config_id)
    if not config:
        raise NotFoundError("工资配置不存在")
    return config


async def effective_configs(db: AsyncSession, target: date) -> List[SalaryConfig]:
    """
    Rows in force on target, one per config_type.

    A row is in force when effective_date <= target and it has not expired
    before target; among those the latest effective_date wins.
    """
    result = await db.execute(
        select(SalaryConfig)
        .where(
            SalaryConfig.effective_date <= target,
            or_(SalaryConfig.expiry_date.is_(None), SalaryConfig.expiry_date >= target),
        )
        .order_by(SalaryConfig.effective_date.desc(), SalaryConfig.id.desc())
    )
    latest: Dict[str, SalaryConfig] = {}
    for config in result.scalars().all():
        latest.setdefault(config.config_type, config)
    return list(latest.values())


async def resolve_rates(db: AsyncSession, target: date) -> Dict[SalaryConfigType, Decimal]:
    """Rate per config type on target; types without a row in force resolve to 0."""
    rates = {config_type: Decimal("0") for config_type in SalaryConfigType}
    for config in await effective_configs(db, target):
        try:
            rates[SalaryConfigType(config.config_type)] = to_decimal(config.amount)
        except ValueError:
            logger.warning("Ignoring salary config %s with unknown type %s", config.id, config.config_type)
    return rates


async def list_configs(
    db: AsyncSession,
    config_type: Optional[str],
    keyword: Optional[str],
    limit: int,
    offset: int,
) -> ListData[SalaryConfigResponse]:
    stmt = select(SalaryConfig)
    if config_type:
        stmt = stmt.where(SalaryConfig.config_type == config_type)
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(or_(SalaryConfig.config_name.like(pattern), SalaryConfig.remarks.like(pattern)))
    stmt = stmt.order_by(SalaryConfig.effective_date.desc(), SalaryConfig.id.desc())
    rows, pagination = await paginate(db, stmt, limit, offset)
    return ListData(list=[SalaryConfigResponse.model_validate(c) for c in rows], pagination=pagination)


async def get_current_configs(db: AsyncSession, target: date) -> List[SalaryConfigResponse]:
    return [SalaryConfigResponse.model_validate(c) for c in await effective_configs(db, target)]


async def get_config(db: AsyncSession, config_id: int) -> SalaryConfigResponse:
    return SalaryConfigResponse.model_validate(await _get_or_404(db, config_id))


async def create_config(db: AsyncSession, payload: SalaryConfigCreate) -> SalaryConfigResponse:
    config = SalaryConfig(
        config_name=payload.config_name.strip(),
        config_type=payload.config_type.value,
        amount=payload.amount,
        effective_date=payload.effective_date,
        expiry_date=payload.expiry_date,
        remarks=payload.remarks,
    )
    db.add(config)
    await db.commit()
    await db.refresh(config)
    logger.info(
        "Salary config %s created: %s=%s from %s", config.id, config.config_type, config.amount, config.effective_date
    )
    return SalaryConfigResponse.model_validate(config)


async def update_config(db: AsyncSession, config_id: int, payload: SalaryConfigUpdate) -> SalaryConfigResponse:
    config = await _get_or_404(db, config_id)
    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        if value is None and field in ("config_name", "config_type", "amount", "effective_date"):
            continue
        if isinstance(value, SalaryConfigType):
            value = value.value
        setattr(config, field, value)
    if config.expiry_date is not None and config.expiry_date < config.effective_date:
        await db.rollback()
        raise ValidationError("失效日期不能早于生效日期")
    await db.commit()
    await db.refresh(config)
    return SalaryConfigResponse.model_validate(config)


async def delete_config(db: AsyncSession, config_id: int) -> None:
    config = await _get_or_404(db, config_id)
    await db.delete(config)
    await db.commit()
