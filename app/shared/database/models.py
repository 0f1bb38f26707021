from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text, ForeignKey, Numeric,
    UniqueConstraint, JSON
)
from sqlalchemy.orm import relationship
from app.config.database import Base


class TimestampMixin:
    """Mixin para timestamps automáticos"""
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

# ===== ORGANIZACIONES Y USUARIOS =====

class Organization(Base, TimestampMixin):
    """Concesionaria (tenant)"""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    logo_url = Column(String(500))
    thumbnail_url = Column(String(500))
    secure_mode_enabled = Column(Boolean, default=False, nullable=False)
    otp_secret = Column(String(64))
    otp_verified = Column(Boolean, default=False, nullable=False)

    # Relationships
    users = relationship("User", back_populates="organization")
    branches = relationship("Branch", back_populates="organization", order_by="Branch.order")


class User(Base, TimestampMixin):
    """Usuario del sistema. El rol root no pertenece a ninguna organización."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), index=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default="user", nullable=False)
    phone = Column(String(50))
    address = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="users")

# ===== CONFIGURACIÓN =====

class Branch(Base, TimestampMixin):
    """Sucursal de una organización"""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    order = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="branches_unique_name_per_org"),
    )

    organization = relationship("Organization", back_populates="branches")


class Brand(Base, TimestampMixin):
    """Marca global, compartida entre organizaciones"""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    color = Column(String(20))

    models = relationship("MotorcycleModel", back_populates="brand", order_by="MotorcycleModel.name")


class OrganizationBrand(Base):
    """Asociación de una marca global a una organización"""
    __tablename__ = "organization_brands"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False)
    order = Column(Integer, default=0, nullable=False)
    color = Column(String(20))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "brand_id", name="organization_brands_unique"),
    )

    brand = relationship("Brand")


class MotorcycleModel(Base, TimestampMixin):
    """Modelo de una marca"""
    __tablename__ = "motorcycle_models"

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    image_url = Column(String(500))

    __table_args__ = (
        UniqueConstraint("brand_id", "name", name="motorcycle_models_unique_per_brand"),
    )

    brand = relationship("Brand", back_populates="models")
    files = relationship("ModelFile", back_populates="model", cascade="all, delete-orphan")


class ModelFile(Base):
    """Archivo (ficha técnica, imagen) asociado a un modelo"""
    __tablename__ = "model_files"

    id = Column(Integer, primary_key=True, index=True)
    model_id = Column(Integer, ForeignKey("motorcycle_models.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    s3_key = Column(String(500), nullable=False)
    url = Column(String(500))
    content_type = Column(String(100))
    size = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    model = relationship("MotorcycleModel", back_populates="files")


class Color(Base, TimestampMixin):
    """Color configurado por la organización"""
    __tablename__ = "colors"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), default="SOLIDO", nullable=False)
    color_one = Column(String(20), nullable=False)
    color_two = Column(String(20))
    order = Column(Integer, default=0, nullable=False)

# ===== CLIENTES Y PROVEEDORES =====

class Client(Base, TimestampMixin):
    """Cliente de la concesionaria"""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    type = Column(String(30), default="Individual", nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255))
    company_name = Column(String(255))
    tax_id = Column(String(50), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    mobile = Column(String(50))
    address = Column(String(255))
    vat_status = Column(String(100))
    status = Column(String(20), default="active", nullable=False)
    notes = Column(Text)

    __table_args__ = (
        UniqueConstraint("organization_id", "tax_id", name="clients_unique_tax_id_per_org"),
    )

    @property
    def full_name(self):
        if self.type == "LegalEntity" and self.company_name:
            return self.company_name
        return f"{self.first_name} {self.last_name or ''}".strip()


class Supplier(Base, TimestampMixin):
    """Proveedor de unidades"""
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    legal_name = Column(String(255), nullable=False)
    commercial_name = Column(String(255))
    tax_id = Column(String(50), nullable=False)
    vat_condition = Column(String(100))
    contact_name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(String(255))
    city = Column(String(100))
    province = Column(String(100))
    bank_name = Column(String(100))
    bank_account = Column(String(100))
    cbu = Column(String(50))
    payment_terms = Column(String(255))
    status = Column(String(20), default="activo", nullable=False)
    notes = Column(Text)

    __table_args__ = (
        UniqueConstraint("organization_id", "tax_id", name="suppliers_unique_tax_id_per_org"),
    )

# ===== STOCK =====

class Motorcycle(Base, TimestampMixin):
    """Unidad en stock"""
    __tablename__ = "motorcycles"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False)
    model_id = Column(Integer, ForeignKey("motorcycle_models.id"), nullable=False)
    color_id = Column(Integer, ForeignKey("colors.id"))
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"))
    client_id = Column(Integer, ForeignKey("clients.id"))
    year = Column(Integer, nullable=False)
    displacement = Column(Integer)
    chassis_number = Column(String(100), nullable=False)
    engine_number = Column(String(100))
    license_plate = Column(String(20))
    mileage = Column(Integer, default=0, nullable=False)
    currency = Column(String(3), default="ARS", nullable=False)
    cost_price = Column(Numeric(12, 2))
    retail_price = Column(Numeric(12, 2), nullable=False)
    wholesale_price = Column(Numeric(12, 2))
    image_url = Column(String(500))
    observations = Column(Text)
    state = Column(String(20), default="STOCK", nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("organization_id", "chassis_number", name="motorcycles_unique_chassis_per_org"),
    )

    brand = relationship("Brand")
    model = relationship("MotorcycleModel")
    color = relationship("Color")
    branch = relationship("Branch")
    supplier = relationship("Supplier")
    client = relationship("Client")

# ===== VENTAS =====

class Reservation(Base, TimestampMixin):
    """Reserva (seña) de una unidad"""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="ARS", nullable=False)
    payment_method = Column(String(50))
    expiration_date = Column(DateTime)
    notes = Column(Text)
    status = Column(String(20), default="active", nullable=False)

    motorcycle = relationship("Motorcycle")
    client = relationship("Client")


class Sale(Base):
    """Venta concretada"""
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    reservation_id = Column(Integer, ForeignKey("reservations.id"))
    banking_promotion_id = Column(Integer, ForeignKey("banking_promotions.id"))
    sale_price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="ARS", nullable=False)
    payment_method = Column(String(50), nullable=False)
    installments = Column(Integer)
    discount_amount = Column(Numeric(12, 2), default=0)
    surcharge_amount = Column(Numeric(12, 2), default=0)
    reservation_amount = Column(Numeric(12, 2), default=0)
    final_amount = Column(Numeric(12, 2), nullable=False)
    trade_in_description = Column(Text)
    notes = Column(Text)
    sale_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    motorcycle = relationship("Motorcycle")
    client = relationship("Client")
    seller = relationship("User")
    branch = relationship("Branch")

# ===== CUENTAS CORRIENTES =====

class CurrentAccount(Base, TimestampMixin):
    """Plan de cuotas (sistema francés)"""
    __tablename__ = "current_accounts"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    down_payment = Column(Numeric(12, 2), default=0, nullable=False)
    remaining_amount = Column(Numeric(12, 2), nullable=False)
    number_of_installments = Column(Integer, nullable=False)
    installment_amount = Column(Numeric(12, 2), nullable=False)
    payment_frequency = Column(String(20), default="MONTHLY", nullable=False)
    interest_rate = Column(Numeric(6, 2), default=0)
    currency = Column(String(3), default="ARS", nullable=False)
    start_date = Column(DateTime, nullable=False)
    next_due_date = Column(DateTime)
    reminder_lead_time_days = Column(Integer)
    status = Column(String(20), default="ACTIVE", nullable=False)
    notes = Column(Text)

    client = relationship("Client")
    motorcycle = relationship("Motorcycle")
    payments = relationship(
        "Payment", back_populates="current_account",
        order_by="(Payment.installment_number, Payment.created_at)"
    )


class Payment(Base):
    """Pago de cuota. installment_version 'D'/'H' marca los asientos de anulación."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    current_account_id = Column(Integer, ForeignKey("current_accounts.id"), nullable=False, index=True)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime)
    payment_method = Column(String(50))
    transaction_reference = Column(String(255))
    installment_number = Column(Integer)
    installment_version = Column(String(1))
    interest_amount = Column(Numeric(12, 2))
    amortized_amount = Column(Numeric(12, 2))
    is_down_payment = Column(Boolean, default=False, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    current_account = relationship("CurrentAccount", back_populates="payments")

# ===== CAJA CHICA =====

class PettyCashDeposit(Base, TimestampMixin):
    """Ingreso a caja chica (DEBE). branch_id nulo = caja general."""
    __tablename__ = "petty_cash_deposits"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, nullable=False)
    reference = Column(String(100))
    status = Column(String(30), default="OPEN", nullable=False)

    branch = relationship("Branch")
    withdrawals = relationship("PettyCashWithdrawal", back_populates="deposit")


class PettyCashWithdrawal(Base, TimestampMixin):
    """Retiro entregado a un usuario a justificar con gastos"""
    __tablename__ = "petty_cash_withdrawals"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    deposit_id = Column(Integer, ForeignKey("petty_cash_deposits.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    user_name = Column(String(255), nullable=False)
    amount_given = Column(Numeric(12, 2), nullable=False)
    amount_justified = Column(Numeric(12, 2), default=0, nullable=False)
    date = Column(DateTime, nullable=False)
    description = Column(String(255))
    status = Column(String(30), default="PENDING_JUSTIFICATION", nullable=False)

    deposit = relationship("PettyCashDeposit", back_populates="withdrawals")
    spends = relationship("PettyCashSpend", back_populates="withdrawal")


class PettyCashSpend(Base, TimestampMixin):
    """Gasto rendido contra un retiro (HABER)"""
    __tablename__ = "petty_cash_spends"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    withdrawal_id = Column(Integer, ForeignKey("petty_cash_withdrawals.id"), nullable=False, index=True)
    motive = Column(String(100), nullable=False)
    description = Column(String(255))
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime, nullable=False)
    ticket_url = Column(String(500))

    withdrawal = relationship("PettyCashWithdrawal", back_populates="spends")

# ===== MEDIOS DE PAGO Y PROMOCIONES =====

class PaymentMethod(Base):
    """Catálogo global de medios de pago"""
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    type = Column(String(50), nullable=False)
    description = Column(String(255))
    icon_url = Column(String(500))


class OrganizationPaymentMethod(Base):
    """Medio de pago habilitado por una organización"""
    __tablename__ = "organization_payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "payment_method_id", name="org_payment_methods_unique"),
    )

    payment_method = relationship("PaymentMethod")


class CardType(Base):
    """Tipo de tarjeta (Visa crédito, Mastercard débito, ...)"""
    __tablename__ = "card_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), default="credit", nullable=False)

    __table_args__ = (
        UniqueConstraint("name", "type", name="card_types_unique"),
    )


class Bank(Base):
    """Banco emisor"""
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    logo_url = Column(String(500))


class BankCard(Base):
    """Combinación banco + tipo de tarjeta habilitada por la organización"""
    __tablename__ = "bank_cards"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    card_type_id = Column(Integer, ForeignKey("card_types.id"), nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "bank_id", "card_type_id", name="bank_cards_unique"),
    )

    bank = relationship("Bank")
    card_type = relationship("CardType")


class BankingPromotion(Base, TimestampMixin):
    """Descuento o recargo asociado a un medio de pago, banco o tarjeta"""
    __tablename__ = "banking_promotions"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id"))
    card_type_id = Column(Integer, ForeignKey("card_types.id"))
    bank_card_id = Column(Integer, ForeignKey("bank_cards.id"))
    discount_rate = Column(Numeric(6, 2))
    surcharge_rate = Column(Numeric(6, 2))
    min_amount = Column(Numeric(12, 2))
    max_amount = Column(Numeric(12, 2))
    start_date = Column(Date)
    end_date = Column(Date)
    active_days = Column(JSON, default=list, nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)

    payment_method = relationship("PaymentMethod")
    bank = relationship("Bank")
    card_type = relationship("CardType")
    bank_card = relationship("BankCard")
    installment_plans = relationship(
        "InstallmentPlan", back_populates="promotion",
        order_by="InstallmentPlan.installments", cascade="all, delete-orphan"
    )


class InstallmentPlan(Base):
    """Plan de cuotas de una promoción"""
    __tablename__ = "installment_plans"

    id = Column(Integer, primary_key=True, index=True)
    banking_promotion_id = Column(Integer, ForeignKey("banking_promotions.id"), nullable=False, index=True)
    installments = Column(Integer, nullable=False)
    interest_rate = Column(Numeric(6, 2), default=0, nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)

    promotion = relationship("BankingPromotion", back_populates="installment_plans")

# ===== LOGÍSTICA =====

class LogisticProvider(Base, TimestampMixin):
    """Proveedor de transporte"""
    __tablename__ = "logistic_providers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    contact_name = Column(String(255))
    contact_phone = Column(String(50))
    contact_email = Column(String(255))
    address = Column(String(255))
    transport_types = Column(JSON, default=list, nullable=False)
    vehicle_types = Column(JSON, default=list, nullable=False)
    coverage_zones = Column(JSON, default=list, nullable=False)
    price_per_km = Column(Numeric(12, 2))
    base_fee = Column(Numeric(12, 2))
    currency = Column(String(3), default="ARS", nullable=False)
    insurance = Column(Boolean, default=False, nullable=False)
    max_weight = Column(Numeric(10, 2))
    max_volume = Column(Numeric(10, 2))
    special_requirements = Column(Text)
    rating = Column(Numeric(3, 1))
    status = Column(String(20), default="activo", nullable=False)
    notes = Column(Text)


class MotorcycleTransfer(Base, TimestampMixin):
    """Traslado de una unidad entre sucursales"""
    __tablename__ = "motorcycle_transfers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False, index=True)
    from_branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    to_branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    logistic_provider_id = Column(Integer, ForeignKey("logistic_providers.id"))
    status = Column(String(20), default="REQUESTED", nullable=False, index=True)
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    confirmed_by = Column(Integer, ForeignKey("users.id"))
    requested_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    scheduled_pickup_date = Column(DateTime)
    actual_pickup_date = Column(DateTime)
    estimated_delivery_date = Column(DateTime)
    actual_delivery_date = Column(DateTime)
    cost = Column(Numeric(12, 2))
    tracking_number = Column(String(100))
    notes = Column(Text)

    motorcycle = relationship("Motorcycle")
    from_branch = relationship("Branch", foreign_keys=[from_branch_id])
    to_branch = relationship("Branch", foreign_keys=[to_branch_id])
    logistic_provider = relationship("LogisticProvider")
    requester = relationship("User", foreign_keys=[requested_by])
    confirmer = relationship("User", foreign_keys=[confirmed_by])

# ===== MERCADOPAGO =====

class MercadoPagoOAuth(Base, TimestampMixin):
    """Credenciales OAuth de MercadoPago de una organización"""
    __tablename__ = "mercadopago_oauth"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), unique=True, nullable=False)
    mercadopago_user_id = Column(String(50), nullable=False)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text)
    public_key = Column(String(255))
    email = Column(String(255))
    scopes = Column(JSON, default=list, nullable=False)
    expires_at = Column(DateTime)


class MercadoPagoOAuthState(Base):
    """state + code_verifier pendientes del flujo PKCE"""
    __tablename__ = "mercadopago_oauth_states"

    id = Column(Integer, primary_key=True, index=True)
    state = Column(String(255), unique=True, nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    code_verifier = Column(String(128), nullable=False)
    consumed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class MercadoPagoPayment(Base, TimestampMixin):
    """Pago registrado en MercadoPago (checkout, Point o webhook)"""
    __tablename__ = "mercadopago_payments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    mp_payment_id = Column(String(50), unique=True, nullable=False, index=True)
    status = Column(String(30), nullable=False)
    status_detail = Column(String(100))
    amount = Column(Numeric(12, 2))
    currency = Column(String(3))
    external_reference = Column(String(255))
    payment_method_id = Column(String(50))
    payer_email = Column(String(255))
    source = Column(String(20), default="checkout", nullable=False)
    raw = Column(JSON)


class PointPaymentIntent(Base, TimestampMixin):
    """Orden enviada a una terminal Point"""
    __tablename__ = "point_payment_intents"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    device_id = Column(String(100), nullable=False)
    mp_order_id = Column(String(100), index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(255))
    external_reference = Column(String(255))
    status = Column(String(30), default="created", nullable=False)
