import pytest
from sqlalchemy.orm import sessionmaker

from conftest import at
from homesphere.config import Settings
from homesphere.database.database import check_schema, init_db, make_engine
from homesphere.database.store import HouseholdStore
from homesphere.exceptions import HomeSphereError
from homesphere.models.attribute import BooleanAttribute, RangeAttribute
from homesphere.models.device import OnlineState, PowerState
from homesphere.models.manufacturer import Manufacturer
from homesphere.system import HomeSphereSystem


@pytest.fixture
def store(factory):
    engine = make_engine("sqlite://")
    init_db(engine)
    yield HouseholdStore(sessionmaker(bind=engine, autocommit=False, autoflush=False), factory)
    engine.dispose()


def populate(system):
    living = system.household.find_room("Living Room")
    maker = Manufacturer.create("Acme", ["WIFI"])
    ac = system.create_device("AIR_CONDITIONER", "AC", living.id, manufacturer=maker)
    vent = system.create_device("UNDEFINED", "Vent", living.id,
                                attributes=[BooleanAttribute("open"), RangeAttribute("speed", 0, 3, 0)],
                                power_draw=25)
    system.household.register_user("admin", "pw", is_admin=True)
    ac.set_value("temperature", 21)
    vent.set_value("speed", 2)
    ac.connect()
    ac.open(at(0))
    ac.close(at(3600))
    ac.open(at(7200))
    scene = system.create_scene("Evening", "wind down", {vent.id: {"open": True}, ac.id: {"mode": "COOL"}})
    return ac, vent, scene


class TestHouseholdStore:
    def test_schema_created(self, store):
        assert check_schema(store.session_factory.kw["bind"])

    def test_round_trip(self, store, system):
        ac, vent, scene = populate(system)
        store.save(system.household, system.scene_engine.list_scenes())

        household, scenes = store.load()
        restored = household.get_device(ac.id)
        assert restored.get_value("temperature") == 21
        assert restored.manufacturer.name == "Acme"
        assert restored.online_state is OnlineState.ONLINE
        assert restored.power_state is PowerState.POWERED
        assert restored.last_powered_on_at == at(7200)
        assert [event.kind for event in restored.ledger.events()] == [event.kind for event in ac.ledger.events()]
        assert restored.intervals() == ac.intervals()

        custom = household.get_device(vent.id)
        assert custom.registry.names() == ["open", "speed"]
        assert custom.get_value("speed") == 2

        assert household.find_user("admin").is_admin
        assert household.room_of(ac.id).name == "Living Room"
        assert [s.name for s in scenes] == ["Evening"]
        assert [device.id for device in scenes[0].devices()] == [vent.id, ac.id]
        assert scenes[0].id == scene.id

    def test_save_replaces_previous_snapshot(self, store, system):
        populate(system)
        store.save(system.household, system.scene_engine.list_scenes())
        system.remove_device(system.household.find_room("Living Room").devices[0].id)
        store.save(system.household, system.scene_engine.list_scenes())

        household, scenes = store.load()
        assert len(household.devices) == 1
        assert len(scenes[0]) == 1

    def test_load_without_data(self, store):
        assert not store.exists()
        with pytest.raises(HomeSphereError):
            store.load()


class TestSystemPersistence:
    def test_save_and_restore(self, clock, tmp_path):
        settings = Settings(database_url=f"sqlite:///{tmp_path / 'home.db'}")
        system = HomeSphereSystem.from_settings(settings, clock=clock)
        system.household.create_room("Living Room")
        populate(system)
        system.save()

        reopened = HomeSphereSystem.from_settings(settings, clock=clock)
        assert len(reopened.household.devices) == 2
        scene = reopened.scene_engine.find_scene("Evening")
        assert reopened.trigger_scene(scene.id) == (2, 2)
        assert reopened.running_log.entries()[-1].event == "Scene executed: Evening"
        system.close()
        reopened.close()
