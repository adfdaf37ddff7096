from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from src.api.exception_handler import attach_exception_handlers

from src.auditaction.apis import AuditActionController
from src.cards.controllers.forms import FormsController
from src.cards.controllers.instances import InstancesController
from src.cards.controllers.issuances import IssuancesController
from src.cards.controllers.rpc import RPCController
from src.cards.controllers.system import SystemFormsController
from src.cards.verification.controllers import VerifyCardController


api = NinjaExtraAPI(title="CARD Registry API", version="1.0.0", csrf=False)

# JWT Authentication
api.register_controllers(NinjaJWTDefaultController)

# Register exception handlers in one place
attach_exception_handlers(api)

api.register_controllers(
    FormsController,
    InstancesController,
    IssuancesController,
    AuditActionController,
    SystemFormsController,
    RPCController,
    VerifyCardController,
)
